"""
ExploreSpeak Deployer - CLI Entry Point.

Provisions the ExploreSpeak backend (DynamoDB tables, Lambda services and
the REST API) in one AWS account/region.

Examples:
    explorespeak-deploy --region eu-west-1
    explorespeak-deploy --api-id abc123 --phase gateway --phase smoke
    explorespeak-deploy --config deployment.json --invoke --debug
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import explorespeak_deployer.constants as CONSTANTS
from explorespeak_deployer.core.config_loader import load_deployment_config
from explorespeak_deployer.core.exceptions import DeploymentError
from explorespeak_deployer.deployer import create_deployment_context, deploy_all
from explorespeak_deployer.logger import configure_logger, logger, print_stack_trace


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="explorespeak-deploy",
        description="Provision the ExploreSpeak AWS backend"
    )
    parser.add_argument("--region", help=f"AWS region (default: AWS_REGION or {CONSTANTS.DEFAULT_REGION})")
    parser.add_argument("--profile", dest="profile_name", help="Named AWS profile (default: ambient credential chain)")
    parser.add_argument("--api-id", help="Existing REST API id (default: look up by name or create)")
    parser.add_argument("--role-name", help=f"Lambda execution role (default: {CONSTANTS.DEFAULT_LAMBDA_ROLE_NAME})")
    parser.add_argument("--stage", dest="stage_name", help=f"API stage name (default: {CONSTANTS.DEFAULT_STAGE_NAME})")
    parser.add_argument("--source-root", type=Path, help="Directory containing backend/lambdas (default: current directory)")
    parser.add_argument("--config", type=Path, help=f"Optional JSON configuration file, e.g. {CONSTANTS.CONFIG_FILE}")
    parser.add_argument(
        "--phase",
        action="append",
        choices=CONSTANTS.ALL_PHASES,
        dest="phases",
        help="Phase to run; repeatable (default: all)"
    )
    parser.add_argument("--invoke", action="store_true", default=None,
                        help="Invoke each function once during the smoke test")
    parser.add_argument("--install-dependencies", action="store_true", default=None,
                        help="Run npm install in each function directory before zipping")
    parser.add_argument("--debug", action="store_true", help="Verbose logging and stack traces")
    return parser


def _overrides_from_args(args: argparse.Namespace) -> dict:
    return {
        "region": args.region,
        "profile_name": args.profile_name,
        "api_id": args.api_id,
        "role_name": args.role_name,
        "stage_name": args.stage_name,
        "source_root": args.source_root,
        "invoke_functions": args.invoke,
        "install_dependencies": args.install_dependencies,
        "mode": "DEBUG" if args.debug else None,
    }


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logger(args.debug)

    try:
        config = load_deployment_config(args.config, overrides=_overrides_from_args(args))
        configure_logger(config.debug)
        context = create_deployment_context(config)
    except DeploymentError as e:
        logger.error(f"❌ {e}")
        print_stack_trace()
        return 1

    summary = deploy_all(context, phases=args.phases or CONSTANTS.ALL_PHASES)

    return 1 if summary.halted_by is not None else 0


if __name__ == "__main__":
    sys.exit(main())
