from futures_ledger.presentation.cli.scenario_runner import ScenarioRunner, StepResult, main

__all__ = ["ScenarioRunner", "StepResult", "main"]
