"""Advisor orchestration: fetch, classify, recommend, notify per wallet."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..config import AppConfig, WalletConfig
from ..engine.health import classify_snapshot
from ..engine.recommendations import RecommendationEngine
from ..engine.simulator import StrategySimulator
from ..errors import PortfolioFetchError
from ..interfaces.notifier import Notifier
from ..interfaces.portfolio_provider import PortfolioDataProvider
from ..models import (
    HealthGrade,
    PortfolioSnapshot,
    Priority,
    RebalanceRecommendation,
    RecommendationRun,
    StrategySimulationResult,
)
from ..notifications import EmailNotifier, TelegramNotifier
from ..providers import SarosApiProvider

logger = logging.getLogger(__name__)

_PROVIDER_FACTORIES = {
    "saros": SarosApiProvider,
}

_HEALTH_BADGES = {
    HealthGrade.EXCELLENT: "🟢 Excellent",
    HealthGrade.GOOD: "🟢 Good",
    HealthGrade.FAIR: "🟡 Fair",
    HealthGrade.POOR: "🔴 Poor",
}


class Advisor:
    """Runs the advisor pipeline for every configured wallet."""

    def __init__(
        self, config: AppConfig, provider: PortfolioDataProvider | None = None
    ) -> None:
        self._config = config
        self._thresholds = config.health

        if provider is None:
            factory = _PROVIDER_FACTORIES.get(config.provider.name)
            if factory is None:
                raise ValueError(f"Unknown data provider '{config.provider.name}'")
            provider = factory(config.provider)
        self._provider = provider

        self._engine = RecommendationEngine(config.recommendations)
        self._simulator = StrategySimulator(config.simulator)

        self._notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            self._notifiers.append(TelegramNotifier(config.notifications.telegram))
        if config.notifications.email.enabled:
            self._notifiers.append(EmailNotifier(config.notifications.email))

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_wallet(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _health_badge(grade: HealthGrade | None) -> str:
        if grade is None:
            return "⚪ Unknown"
        return _HEALTH_BADGES[grade]

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def _format_recommendation(rec: RebalanceRecommendation) -> str:
        impact = rec.expected_impact
        return (
            f"[{rec.priority.value.upper()}] {rec.type.value} · {rec.position_id}\n"
            f"  {rec.reason}\n"
            f"  → {rec.suggested_action}\n"
            f"  Impact: fees +{impact.fees_increase_pct:.1f}% · "
            f"IL -{impact.il_reduction_pct:.1f}% · "
            f"confidence {impact.confidence_score:.0%}"
        )

    def _build_log_message(
        self,
        wallet: WalletConfig,
        snapshot: PortfolioSnapshot,
        run: RecommendationRun,
    ) -> str:
        lines = [f"📊 {wallet.label} · {self._provider.provider_name}", ""]
        for position in snapshot.positions:
            count = len(run.for_position(position.id))
            lines.append(
                f"{position.pair} · {self._health_badge(position.health)}\n"
                f"  Bins: {position.lower_bin_id}-{position.upper_bin_id} "
                f"({position.bin_count} bins, active {position.active_bin_id})\n"
                f"  Value: ${position.current_value:,.2f} · "
                f"Fees: ${position.unclaimed_fees:,.2f} · "
                f"PnL: {position.pnl_percentage:+.2f}%\n"
                f"  Recommendations: {count}"
            )
        if run.failures:
            lines.append("")
            lines.append("⚠️ Positions omitted from analysis:")
            for failure in run.failures:
                lines.append(f"  {failure.position_id}: {failure.error}")
        lines.append("")
        lines.append(f"{self._now_str()} UTC")
        return "\n".join(lines)

    def _build_alert(
        self,
        wallet: WalletConfig,
        recommendations: list[RebalanceRecommendation],
    ) -> str:
        body = "\n\n".join(self._format_recommendation(r) for r in recommendations)
        return (
            f"🚨 {len(recommendations)} high-priority action(s)\n"
            f"\n"
            f"{wallet.label} · {self._format_wallet(wallet.address)}\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = False) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def analyze_wallet(
        self, wallet: WalletConfig
    ) -> tuple[PortfolioSnapshot, RecommendationRun]:
        """Fetch, classify and evaluate one wallet's positions."""
        snapshot = await self._provider.fetch(wallet.address)
        classified = classify_snapshot(snapshot, self._thresholds)
        run = self._engine.evaluate(
            classified.positions, generated_at=datetime.now(timezone.utc)
        )
        return classified, run

    async def check_and_alert(self) -> None:
        """Analyze every wallet and alert on high-priority recommendations."""
        for wallet in self._config.wallets:
            try:
                snapshot, run = await self.analyze_wallet(wallet)
            except PortfolioFetchError as e:
                logger.error("Could not fetch portfolio for %s: %s", wallet.label, e)
                continue
            except Exception as e:
                logger.error("Error analyzing wallet %s: %s", wallet.label, e)
                continue

            if not snapshot.positions:
                await self._send_log(
                    f"📊 {wallet.label} · {self._provider.provider_name}\n"
                    f"\n"
                    f"No active positions found.\n"
                    f"\n"
                    f"{self._now_str()} UTC",
                    silent=False,
                )
                continue

            for position in snapshot.positions:
                logger.info(
                    "Position %s · %s · bins %d-%d active %s · health %s · value $%.2f",
                    wallet.label,
                    position.pair,
                    position.lower_bin_id,
                    position.upper_bin_id,
                    position.active_bin_id,
                    position.health.value if position.health else "n/a",
                    position.current_value,
                )

            await self._send_log(self._build_log_message(wallet, snapshot, run))

            urgent = [r for r in run.recommendations if r.priority is Priority.HIGH]
            if urgent:
                await self._send_alert(
                    self._build_alert(wallet, urgent),
                    subject="🚨 Rebalance needed",
                )

    async def generate_daily_report(self) -> None:
        """Send a per-wallet summary of value, health and recommendations."""
        sections: list[str] = []

        for wallet in self._config.wallets:
            try:
                snapshot, run = await self.analyze_wallet(wallet)
            except PortfolioFetchError as e:
                logger.error("Could not fetch portfolio for %s: %s", wallet.label, e)
                sections.append(f"━━ {wallet.label} ━━\n\nData unavailable: {e}")
                continue
            except Exception as e:
                logger.error("Error analyzing wallet %s: %s", wallet.label, e)
                sections.append(f"━━ {wallet.label} ━━\n\nAnalysis failed: {e}")
                continue

            if not snapshot.positions:
                continue

            counts = run.count_by_priority()
            lines = [
                f"━━ {wallet.label} ━━",
                "",
                f"Total value: ${snapshot.total_value:,.2f}",
                f"Unclaimed fees: ${snapshot.total_fees:,.2f}",
                f"PnL: ${snapshot.total_pnl:,.2f} ({snapshot.total_pnl_percentage:+.2f}%)",
                f"Average APR: {snapshot.average_apr:.1f}%",
                "",
            ]
            lines.extend(
                f"  {p.pair} · {self._health_badge(p.health)} · ${p.current_value:,.2f}"
                for p in snapshot.positions
            )
            lines.append("")
            lines.append(
                f"Recommendations: {counts[Priority.HIGH]} high · "
                f"{counts[Priority.MEDIUM]} medium · {counts[Priority.LOW]} low"
            )
            sections.append("\n".join(lines))

        body = "\n\n".join(sections) if sections else "No active positions found."
        report = (
            f"📋 Daily DLMM Position Report\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

        await self._send_alert(report, subject="Daily DLMM Position Report")
        logger.info("Daily report sent")

    async def simulate_position(
        self,
        wallet_label: str,
        position_id: str,
        strategy: str,
        time_horizon: str | None = None,
    ) -> StrategySimulationResult:
        """Simulate a strategy for one live position.

        Raises:
            KeyError: unknown wallet label or position id.
            InvalidStrategy: unknown strategy name.
        """
        wallet = next(
            (w for w in self._config.wallets if w.label == wallet_label), None
        )
        if wallet is None:
            raise KeyError(f"Unknown wallet '{wallet_label}'")

        snapshot = await self._provider.fetch(wallet.address)
        position = snapshot.get_position(position_id)
        if position is None:
            raise KeyError(f"Position '{position_id}' not found for {wallet_label}")

        return self._simulator.simulate(position, strategy, time_horizon)

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Run the check loop until cancelled."""
        interval = check_interval_minutes or self._config.monitor.check_interval_minutes
        logger.info("Starting continuous monitoring (checking every %d minutes)", interval)

        while True:
            try:
                await self.check_and_alert()
                await asyncio.sleep(interval * 60)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
