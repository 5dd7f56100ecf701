"""
Validate and import a game plan CSV from the command line.
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import os
from pathlib import Path

from app.api.dependencies import GamePlanValidatorFactory
from app.config import get_validation_settings
from app.services.import_orchestrator_service import ImportOrchestratorService, InlineTaskExecutor
from db.session import SessionLocal


def _read_records(path: Path) -> list[dict[str, str]]:
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        return [dict(row) for row in csv.DictReader(handle)]


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate and import game plans for one country and cycle.")
    parser.add_argument("--file", dest="file", required=True, help="Path to the game plan CSV file.")
    parser.add_argument("--country", dest="country", required=True, help="Target country name or id.")
    parser.add_argument("--cycle", dest="cycle", required=True, type=int, help="Target financial cycle id.")
    parser.add_argument(
        "--validate-only",
        dest="validate_only",
        action="store_true",
        help="Report validation issues without importing.",
    )
    parser.add_argument(
        "--skip-validation",
        dest="skip_validation",
        action="store_true",
        help="Import even when critical validation issues exist.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    path = Path(args.file)
    records = _read_records(path)
    settings = get_validation_settings()

    with SessionLocal() as db:
        validator = GamePlanValidatorFactory(db=db, settings=settings).build(
            country=args.country,
            financial_cycle_id=args.cycle,
        )
        issues = validator.validate_all(records)
        summary = validator.get_validation_summary(issues)

        if args.validate_only or (not summary.can_import and not args.skip_validation):
            print(
                json.dumps(
                    {
                        "summary": {
                            "total": summary.total,
                            "critical": summary.critical,
                            "warning": summary.warning,
                            "suggestion": summary.suggestion,
                            "byColumn": summary.by_column,
                            "uniqueRows": summary.unique_rows,
                            "canImport": summary.can_import,
                        },
                        "issues": [issue.to_dict() for issue in issues],
                    },
                    indent=2,
                )
            )
            return 0 if summary.can_import else 1

        orchestrator = ImportOrchestratorService()
        run = orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=records,
            country=args.country,
            financial_cycle_id=args.cycle,
            source=path.name,
        )
        db.expire_all()
        finished = orchestrator.get_run(db=db, run_id=run.id)

    payload = {
        "run_id": str(run.id),
        "status": finished.status if finished is not None else None,
        "error": finished.error_message if finished is not None else None,
        "result": finished.result_payload if finished is not None else None,
    }
    print(json.dumps(payload, indent=2, default=str))
    return 0 if finished is not None and finished.status == "imported" else 1


if __name__ == "__main__":
    raise SystemExit(main())
