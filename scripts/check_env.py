"""Check that a GradeWise ``.env`` file describes a deployable configuration.

Problems block startup and make the script exit non-zero:

* the Schoology consumer pair is missing or still a template placeholder,
* ``SCHOOLOGY_CALLBACK_URL`` is missing, or is plain http outside local
  development,
* the in-memory token backend is selected outside local development.

Warnings are printed but do not fail the check: a missing admin pair (the
sections fallback and mock login need it), no ``TOKEN_ENCRYPTION_SECRET``
(tokens would be encrypted with the consumer secret, so rotating it strands
them), and a Firestore backend without ``FIREBASE_PROJECT_ID``.

Offline deployments never contact Schoology and skip the credential checks.

Example::

    python -m scripts.check_env --env-file /opt/gradewise/.env
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from gradewise.clients.oauth1_signer import require_credential
from gradewise.core.config import AppSettings, TokenBackend, _load_env_file
from gradewise.core.errors import ConfigurationError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


@dataclass
class CheckReport:
    problems: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _check_credentials(settings: AppSettings, report: CheckReport) -> None:
    schoology = settings.schoology
    try:
        require_credential(schoology.consumer_key, schoology.consumer_secret, label="consumer")
    except ConfigurationError as exc:
        report.problems.append(str(exc))
    try:
        require_credential(schoology.admin_key, schoology.admin_secret, label="admin")
    except ConfigurationError as exc:
        report.warnings.append(f"{exc} Admin run-as and mock login will fail.")


def _check_callback(settings: AppSettings, report: CheckReport) -> None:
    callback = settings.schoology.callback_url
    if callback is None:
        report.problems.append("SCHOOLOGY_CALLBACK_URL is not configured.")
    elif callback.scheme != "https" and not settings.is_local_development:
        report.problems.append("SCHOOLOGY_CALLBACK_URL must use https outside local development.")


def _check_storage(settings: AppSettings, report: CheckReport) -> None:
    storage = settings.storage
    if storage.backend is TokenBackend.MEMORY and not settings.is_local_development:
        report.problems.append(
            "GRADEWISE_TOKEN_BACKEND=memory loses every token on restart; use firestore or sqlite."
        )
    if storage.backend is TokenBackend.FIRESTORE and not storage.firestore_project_id:
        report.warnings.append(
            "FIREBASE_PROJECT_ID is not set; the project is taken from the Google credentials."
        )
    if not settings.security.token_encryption_secret:
        report.warnings.append(
            "TOKEN_ENCRYPTION_SECRET is not set; stored tokens are keyed to the consumer secret."
        )


def build_report(settings: AppSettings) -> CheckReport:
    report = CheckReport()
    if not settings.offline_mode:
        _check_credentials(settings, report)
        _check_callback(settings, report)
    _check_storage(settings, report)
    return report


def _load_settings(env_file: Path) -> AppSettings:
    if not env_file.exists():
        raise FileNotFoundError(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool."
        )
    _load_env_file(str(env_file))
    return AppSettings(_env_file=env_file)  # type: ignore[call-arg]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate GradeWise deployment settings.")
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = _load_settings(args.env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    report = build_report(settings)
    for warning in report.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    for problem in report.problems:
        print(f"error: {problem}", file=sys.stderr)
    if report.problems:
        return EXIT_VALIDATION_ERROR

    print("Environment OK.")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
