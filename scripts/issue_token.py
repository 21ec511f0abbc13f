"""
Issue a signed access token for a faculty / exam cell / admin user.

Users are managed by the institution backend; this script only signs the
claims the API reads (sub, name, role).

Usage:
    python scripts/issue_token.py --user f-102 --name "Dr. Rao" --role faculty
    python scripts/issue_token.py --user ec-1 --role exam_cell --minutes 60
"""

import sys
import os
import argparse
from typing import List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api.auth.permissions import Role
from api.auth.utils import issue_user_token


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Issue an Exam Cell API access token",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "--user", "-u",
        type=str,
        required=True,
        help="User id (token subject)"
    )

    parser.add_argument(
        "--name", "-n",
        type=str,
        default=None,
        help="Display name (default: the user id)"
    )

    parser.add_argument(
        "--role", "-r",
        type=str,
        choices=[role.value for role in Role],
        default=Role.FACULTY.value,
        help="Role (default: faculty)"
    )

    parser.add_argument(
        "--minutes", "-m",
        type=int,
        default=None,
        help="Lifetime in minutes (default: JWT_ACCESS_TOKEN_EXPIRE_MINUTES)"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> str:
    args = build_parser().parse_args(argv)

    token = issue_user_token(args.user, args.role, name=args.name, minutes=args.minutes)
    print(token)
    return token


if __name__ == "__main__":
    main()
