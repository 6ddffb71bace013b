#!/usr/bin/env python3
"""
Print a signed bearer token for local API testing.

Usage:
    python scripts/auth/issue_dev_token.py ADMIN --email admin@example.org
    python scripts/auth/issue_dev_token.py MEMBER --member-id <uuid> --hours 2
"""

import argparse
import os
import sys
from datetime import timedelta

project_root = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
)
sys.path.insert(0, project_root)

from dotenv import load_dotenv

# Must run before anything calls get_settings()
load_dotenv(os.path.join(project_root, os.environ.get("ENV_FILE", ".env")), override=True)

from libs.auth.dependencies import create_access_token
from libs.auth.models import Role


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("role", choices=[r.value for r in Role])
    parser.add_argument("--subject", default="local-dev")
    parser.add_argument("--email")
    parser.add_argument("--member-id")
    parser.add_argument("--hours", type=float, default=8)
    args = parser.parse_args()

    print(
        create_access_token(
            args.subject,
            Role(args.role),
            email=args.email,
            member_id=args.member_id,
            expires_delta=timedelta(hours=args.hours),
        )
    )


if __name__ == "__main__":
    main()
