#!/usr/bin/env python3
"""
Cluster Plan Preview

Imports a cluster configuration document and prints the servers it
would create:
1. Import the document into a fresh draft
2. Validate it the way the review step does
3. Print each server, or the full creation request with --json
"""

import argparse
import json
import sys

from asa.config.models import GAME_USER_SETTINGS, PortAllocationMode, WizardStep
from asa.config.settings import configure_logging
from asa.core.servers import describe_server
from asa.core.steps import validate_step
from asa.core.wizard import SetPortAllocationMode, WizardStateStore
from asa.utils.text_utils import mask_password, render_ini


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asa-plan",
        description="Preview the servers an ASA cluster configuration produces",
    )
    parser.add_argument("document", help="Cluster configuration JSON file")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in PortAllocationMode],
        help="Override the port allocation mode",
    )
    parser.add_argument("--json", action="store_true", help="Print the cluster creation request")
    parser.add_argument("--ini", action="store_true", help="Print GameUserSettings.ini per server")
    parser.add_argument("--log-level", default=None, help="Logging level (default: ASA_LOG_LEVEL)")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    store = WizardStateStore()
    result = store.import_file(args.document)
    if not result.success:
        print(f"✗ Import failed ({result.error.value if result.error else 'error'}): {result.message}")
        sys.exit(1)

    issues = []
    if args.mode:
        changed = store.dispatch(SetPortAllocationMode(mode=PortAllocationMode(args.mode)))
        if not changed.success:
            issues.append(changed.message)

    issues.extend(validate_step(WizardStep.REVIEW, store.data))
    plan = store.plan()

    if args.json:
        print(json.dumps(plan.to_payload(), indent=2))
    else:
        data = plan.data
        print(f"✓ {data.cluster_name}: {len(plan.servers)} server(s), "
              f"{data.port_allocation_mode.value} ports")
        print(f"  Admin password: {mask_password(data.admin_password) or '(none)'}")
        for server in plan.servers:
            print(f"✓ {describe_server(server)}")
            if args.ini:
                sections = plan.server_entry(server)[GAME_USER_SETTINGS]
                session = sections.get("SessionSettings", {})
                for key in ("ServerPassword", "ServerAdminPassword"):
                    session[key] = mask_password(session.get(key, ""))
                print(render_ini(sections))

    for issue in issues:
        print(f"✗ {issue}", file=sys.stderr)

    sys.exit(1 if issues else 0)


if __name__ == "__main__":
    main()
