"""Cetus aggregator router client."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..chains.sui.transaction import Argument, TransactionDraft
from ..config import AggregatorConfig
from ..models import MergedRoute, Route, RouteStep
from ..registry import normalize_coin_type

logger = logging.getLogger(__name__)

PROVIDER = "cetus"


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _steps(route: dict[str, Any]) -> tuple[RouteStep, ...]:
    steps = []
    for hop in route.get("path") or []:
        if not isinstance(hop, dict):
            continue
        source = hop.get("from")
        target = hop.get("target")
        if source and target:
            steps.append(
                RouteStep(
                    from_coin_type=source,
                    target_coin_type=target,
                    provider=str(hop.get("provider", "")),
                )
            )
    return tuple(steps)


def parse_route(data: Any, from_coin_type: str, target_coin_type: str) -> Route | None:
    """Single-input route from a ``find_routes`` payload, or None if unroutable."""
    if not isinstance(data, dict):
        return None
    amount_out = _int(data.get("amount_out"))
    routes = [r for r in data.get("routes") or [] if isinstance(r, dict)]
    if amount_out <= 0 or not routes:
        return None
    return Route(
        from_coin_type=from_coin_type,
        target_coin_type=target_coin_type,
        amount_in=_int(data.get("amount_in")),
        amount_out=amount_out,
        steps=tuple(step for route in routes for step in _steps(route)),
        raw=data,
    )


def parse_merged_route(data: Any, target_coin_type: str) -> MergedRoute | None:
    """Merged route; ``routed_coin_types`` holds the inputs it converts."""
    if not isinstance(data, dict):
        return None
    amount_out = _int(data.get("amount_out"))
    if amount_out <= 0:
        return None
    routed = set()
    for route in data.get("routes") or []:
        if not isinstance(route, dict):
            continue
        source = route.get("from")
        if not source:
            path = route.get("path") or []
            source = path[0].get("from") if path and isinstance(path[0], dict) else None
        if source and _int(route.get("amount_out", amount_out)) > 0:
            routed.add(normalize_coin_type(source))
    return MergedRoute(
        target_coin_type=target_coin_type,
        amount_out=amount_out,
        routed_coin_types=frozenset(routed),
        raw=data,
    )


class CetusAggregator:
    """Quotes swaps on the Cetus router and appends them to a draft.

    The router being down never raises: quotes come back as None and the
    claim flow reports the swap as unavailable.
    """

    def __init__(self, config: AggregatorConfig) -> None:
        self.endpoint = config.endpoint
        self.routes_path = config.routes_path
        self.merge_routes_path = config.merge_routes_path
        self.depth = config.depth
        self.providers = list(config.providers)
        self.timeout = config.timeout

    async def find_route(
        self, from_coin_type: str, target_coin_type: str, amount: int
    ) -> Route | None:
        params: dict[str, Any] = {
            "from": from_coin_type,
            "target": target_coin_type,
            "amount": str(amount),
            "by_amount_in": "true",
            "depth": str(self.depth),
        }
        if self.providers:
            params["providers"] = ",".join(self.providers)
        data = await self._request("GET", self.routes_path, params=params)
        return parse_route(data, from_coin_type, target_coin_type)

    async def find_merged_route(
        self, target_coin_type: str, inputs: list[tuple[str, int]]
    ) -> MergedRoute | None:
        if not inputs:
            return None
        body: dict[str, Any] = {
            "target": target_coin_type,
            "froms": [
                {"coin_type": coin_type, "amount": str(amount)}
                for coin_type, amount in inputs
            ],
            "by_amount_in": True,
            "depth": self.depth,
        }
        if self.providers:
            body["providers"] = self.providers
        data = await self._request("POST", self.merge_routes_path, json=body)
        return parse_merged_route(data, target_coin_type)

    def build_merged_swap(
        self,
        tx: TransactionDraft,
        route: MergedRoute,
        input_coins: list[tuple[str, Argument]],
        slippage: float,
    ) -> Argument:
        return tx.aggregator_swap(
            PROVIDER, route.raw, input_coins, route.target_coin_type, slippage
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.endpoint}{path}"
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.request(
                    method,
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                    **kwargs,
                ) as response:
                    if response.status != 200:
                        logger.error("Cetus router HTTP %s for %s", response.status, path)
                        return None
                    payload = await response.json(content_type=None)
        except Exception as e:
            logger.error("Cetus router request failed: %s", e)
            return None

        if not isinstance(payload, dict):
            return None
        code = payload.get("code", 200)
        if code != 200:
            logger.warning("Cetus router returned %s: %s", code, payload.get("msg"))
            return None
        return payload.get("data")
