"""Concise human-readable simulation logger."""

from __future__ import annotations

import logging


class HumanLogger:
    """Console logger with fixed line types."""

    def __init__(self, level: str = "INFO") -> None:
        self._logger = logging.getLogger("marketsim")
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self._logger.propagate = False
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s | %(message)s", "%Y-%m-%d %H:%M:%S")
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    def run_started(self, run_id: str, symbols: list[str], source: str) -> None:
        self._logger.info("run | %s | %s | source %s", run_id[:10], ",".join(symbols), source)

    def tick(self, symbol: str, price: float) -> None:
        self._logger.debug("tick | %s | $%s", symbol, f"{price:,.3f}")

    def order_submit(
        self,
        symbol: str,
        side: str,
        qty: int,
        kind: str,
        trigger_price: float | None = None,
    ) -> None:
        parts = [f"submit | {symbol} | {side} {qty} | {kind}"]
        if trigger_price is not None:
            parts.append(f"at ${trigger_price:,.2f}")
        self._logger.info(" | ".join(parts))

    def fill(self, symbol: str, side: str, qty: int, price: float, cash_after: float) -> None:
        self._logger.info(
            "fill | %s | %s %s | $%s | fill_usd $%s | cash $%s",
            symbol,
            side,
            qty,
            f"{price:,.3f}",
            f"{qty * price:,.2f}",
            f"{cash_after:,.2f}",
        )

    def rejected(self, symbol: str, side: str, qty: int, reason: str) -> None:
        self._logger.warning(
            "rejected | %s | %s %s | %s", symbol, side, qty, self._human_reason(reason)
        )

    def discarded(self, order_id: str, symbol: str, reason: str) -> None:
        self._logger.warning(
            "discarded | %s | %s | %s", symbol, order_id[:10], self._human_reason(reason)
        )

    def portfolio(self, cash: float, equity: float) -> None:
        self._logger.info(
            "portfolio | cash $%s | equity $%s",
            f"{cash:,.2f}",
            f"{equity:,.2f}",
        )

    def position(self, symbol: str, qty: int, market_value: float | None = None) -> None:
        if market_value is None:
            self._logger.info("position | %s | qty %s", symbol, qty)
            return
        self._logger.info("position | %s | qty %s | value $%s", symbol, qty, f"{market_value:,.2f}")

    def cycle_summary(self, ticks: int, fills: int, resting: int) -> None:
        self._logger.debug("cycle | ticks %s | fills %s | resting %s", ticks, fills, resting)

    def error(self, message: str) -> None:
        self._logger.error("error | %s", message)

    @staticmethod
    def _human_reason(reason: str) -> str:
        mapping = {
            "insufficient_funds": "not enough cash",
            "insufficient_shares": "not enough shares",
        }
        return mapping.get(reason, reason)
