"""Per-protocol market/user adapters and claim builders."""
