"""
ScenarioRunner - Replays a YAML scenario against the ledger.

Every step names the operation, the caller and the block height, so a
scenario replays identically every time.

Scenario format:
    balances:            # optional, minted before the first step
      alice: 100000
    steps:
      - op: create_contract
        caller: ledger-owner
        height: 1
        args: {symbol: PET, expiry_in_blocks: 1000}
      - op: open_position
        caller: alice
        height: 5
        args: {contract_id: 1, side: long, size: 1000, token: usd-token}
        expect: ok       # optional: ok or an error code
"""
import argparse
import asyncio
import dataclasses
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from futures_ledger.application.dto.ledger import ExecutionContext, LedgerResponse
from futures_ledger.container import Container
from futures_ledger.domain.entities.position import Position
from futures_ledger.utils.helpers import format_amount

logger = logging.getLogger(__name__)

WRITE_OPERATIONS = (
    "set_oracle",
    "set_collateral_token",
    "create_contract",
    "deactivate_contract",
    "update_price",
    "open_position",
    "close_position",
    "liquidate_position",
)

QUERY_OPERATIONS = (
    "calculate_liquidation_price",
    "get_position_pnl",
)

READ_OPERATIONS = (
    "get_contract",
    "get_position",
    "get_price",
    "get_oracle",
    "get_collateral_token",
    "get_last_contract_id",
)


class ScenarioError(Exception):
    """Raised when a scenario file is malformed."""
    pass


@dataclass(frozen=True)
class StepResult:
    """
    Outcome of one scenario step.

    Attributes:
        index: 1-based step number
        op: Operation name
        caller: Caller principal (None for read operations without one)
        response: Response for write/query operations
        value: Raw value for read operations
        expected: Declared expectation, if any
    """
    index: int
    op: str
    caller: Optional[str]
    response: Optional[LedgerResponse] = None
    value: Any = None
    expected: Optional[str] = None

    @property
    def outcome(self) -> str:
        if self.response is None or self.response.success:
            return "ok"
        return self.response.error_code.value

    @property
    def matches_expectation(self) -> bool:
        if self.expected is None:
            return True
        return self.expected.lower() == self.outcome.lower()

    def describe(self) -> str:
        who = f"{self.caller} " if self.caller else ""
        if self.response is not None and not self.response.success:
            text = f"[{self.index}] {who}{self.op} -> {self.outcome}: {self.response.error_message}"
        else:
            value = self.response.value if self.response is not None else self.value
            text = f"[{self.index}] {who}{self.op} -> ok {_format_value(value)}"
        if not self.matches_expectation:
            text += f" (expected {self.expected})"
        return text


def _format_value(value: Any) -> str:
    if isinstance(value, Position):
        return str(value.to_dict())
    if dataclasses.is_dataclass(value):
        return str(dataclasses.asdict(value))
    if isinstance(value, bool) or value is None:
        return str(value)
    if isinstance(value, int):
        return format_amount(value)
    return str(value)


class ScenarioRunner:
    """
    Runs scenario steps through the LedgerService of a container.
    """

    def __init__(self, container: Container):
        if container is None:
            raise ValueError("Container is required")
        self.container = container
        self.service = container.get_ledger_service()

    @staticmethod
    def load(path: Path) -> Dict[str, Any]:
        """Read a scenario file."""
        with open(path, "r", encoding="utf-8") as f:
            scenario = yaml.safe_load(f) or {}
        if not isinstance(scenario, dict) or not isinstance(scenario.get("steps", []), list):
            raise ScenarioError(f"Scenario {path} must be a mapping with a 'steps' list")
        return scenario

    def fund(self, balances: Dict[str, int]) -> None:
        """Mint starting balances on the custody adapter."""
        custody = self.container.get_custody_port()
        if not hasattr(custody, "mint"):
            raise ScenarioError("Custody adapter does not support minting balances")
        for principal, amount in balances.items():
            custody.mint(principal, amount)
            logger.info(f"Funded {principal} with {format_amount(amount)}")

    async def run(self, scenario: Dict[str, Any]) -> List[StepResult]:
        """Execute all steps in order and collect their results."""
        if scenario.get("balances"):
            self.fund(scenario["balances"])

        results = []
        for index, step in enumerate(scenario.get("steps", []), start=1):
            result = await self.run_step(index, step)
            logger.info(result.describe())
            results.append(result)
        return results

    async def run_step(self, index: int, step: Dict[str, Any]) -> StepResult:
        if not isinstance(step, dict) or "op" not in step:
            raise ScenarioError(f"Step {index} must be a mapping with an 'op' key")

        op = step["op"]
        args = step.get("args") or {}
        caller = step.get("caller")
        expected = step.get("expect")
        if expected is not None:
            expected = str(expected)

        if op in WRITE_OPERATIONS:
            if not caller:
                raise ScenarioError(f"Step {index} ({op}) needs a caller")
            ctx = ExecutionContext(caller=caller, height=int(step.get("height", 0)))
            response = await getattr(self.service, op)(ctx, **args)
            return StepResult(index, op, caller, response=response, expected=expected)

        if op in QUERY_OPERATIONS:
            response = await getattr(self.service, op)(**args)
            return StepResult(index, op, caller, response=response, expected=expected)

        if op in READ_OPERATIONS:
            value = await getattr(self.service, op)(**args)
            return StepResult(index, op, caller, value=value, expected=expected)

        raise ScenarioError(f"Step {index}: unknown operation '{op}'")


async def replay(path: Path, use_database: bool = False) -> List[StepResult]:
    """Load and run a scenario on a fresh ledger."""
    if use_database:
        container = await Container.create_with_database()
    else:
        container = Container()
    runner = ScenarioRunner(container)
    return await runner.run(runner.load(path))


def main(argv: Optional[List[str]] = None) -> int:
    from futures_ledger.config.settings import settings

    parser = argparse.ArgumentParser(description="Replay a futures ledger scenario")
    parser.add_argument("scenario", type=Path, help="Path to the scenario YAML file")
    parser.add_argument(
        "--database",
        action="store_true",
        help="Use the SQL ledger store configured by LEDGER_DATABASE_URL",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        results = asyncio.run(replay(args.scenario, use_database=args.database))
    except (ScenarioError, OSError, yaml.YAMLError) as e:
        logger.error(f"Scenario failed to load or run: {e}")
        return 2

    for result in results:
        print(result.describe())

    mismatches = [r for r in results if not r.matches_expectation]
    if mismatches:
        logger.warning(f"{len(mismatches)} step(s) did not match their expectation")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
