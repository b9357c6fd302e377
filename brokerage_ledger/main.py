"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service
or runs one calculation command.
"""

import argparse
import logging
from datetime import date

import uvicorn

from brokerage_ledger.bootstrap import bootstrap_create_application, bootstrap_create_runtime
from brokerage_ledger.config import config_setup_logging
from brokerage_ledger.jobs import RECALCULATION_STATUS_SUCCESS
from brokerage_ledger.ledger import PERIOD_KINDS, BrokerageEngineError

logger = logging.getLogger(__name__)


def main_build_argument_parser() -> argparse.ArgumentParser:
    """Build the runtime command-line parser.

    Returns:
        argparse.ArgumentParser: Parser for `api`, `calculate` and `recalculate-all`.
    """

    argument_parser = argparse.ArgumentParser(description="Brokerage ledger runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "calculate", "recalculate-all"),
        help="Runtime command: `api` starts server, `calculate` recalculates one client period, "
        "`recalculate-all` recalculates one period for every client",
        type=str,
    )
    argument_parser.add_argument("--client-id", dest="client_id", type=int, help="Client identifier for `calculate`")
    argument_parser.add_argument(
        "--period-kind",
        dest="period_kind",
        type=str,
        choices=PERIOD_KINDS,
        default="month",
        help="Period kind for calculation commands",
    )
    argument_parser.add_argument(
        "--period-start",
        dest="period_start",
        type=date.fromisoformat,
        help="Period start date in YYYY-MM-DD format for calculation commands",
    )
    argument_parser.add_argument(
        "--clear-payment",
        dest="clear_payment",
        action="store_true",
        help="Reset quarter payment state instead of carrying it forward",
    )
    return argument_parser


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with status 1 when a calculation command fails.
    """

    argument_parser = main_build_argument_parser()
    parsed_arguments = argument_parser.parse_args()

    runtime = bootstrap_create_runtime()
    config_setup_logging(runtime.settings.log_level)

    if parsed_arguments.command in ("calculate", "recalculate-all") and parsed_arguments.period_start is None:
        argument_parser.error("--period-start is required for calculation commands")

    if parsed_arguments.command == "calculate":
        if parsed_arguments.client_id is None:
            argument_parser.error("--client-id is required for `calculate`")
        try:
            result = runtime.calculation_service.brokerage_calculate(
                client_id=parsed_arguments.client_id,
                period_kind=parsed_arguments.period_kind,
                period_start=parsed_arguments.period_start,
                clear_payment=parsed_arguments.clear_payment,
            )
        except BrokerageEngineError as error:
            logger.error("calculation failed code=%s message=%s", error.error_code, error.message)
            raise SystemExit(1) from error
        print(
            f"client_id={result.summary.client_id} period={result.period.period_key} "
            f"details={len(result.details)} total_brokerage={result.summary.total_brokerage}"
        )
        return

    if parsed_arguments.command == "recalculate-all":
        run_result = runtime.recalculation_orchestrator.job_execute_recalculation(
            period_kind=parsed_arguments.period_kind,
            period_start=parsed_arguments.period_start,
            clear_payment=parsed_arguments.clear_payment,
        )
        for failure in run_result.failures:
            print(f"FAILED client_id={failure.client_id} code={failure.error_code}: {failure.error_message}")
        if run_result.status != RECALCULATION_STATUS_SUCCESS:
            raise SystemExit(1)
        return

    application = bootstrap_create_application(runtime)
    uvicorn.run(
        application,
        host=runtime.settings.application_host,
        port=runtime.settings.application_port,
    )


if __name__ == "__main__":
    main()
