"""
CLI tool for previewing policy recommendations for a registered user.
Usage: python -m cli.recommend <email>
"""

import sys
import json
import argparse
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pymongo.errors import PyMongoError

from smartlife.config import get_settings
from smartlife.core.mongodb_client import get_database, Collections
from smartlife.services.recommendations import (
    NoActivePoliciesError,
    RecommendationEngine,
    create_recommendation,
)
from smartlife.utils import serialize_document


# ANSI color codes for terminal output
class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def print_header(text: str):
    """Print a header with formatting."""
    print(f"\n{Colors.BOLD}{Colors.BLUE}{text}{Colors.ENDC}")


def print_result(user, ranked, policies):
    """Print the ranked policies in a formatted way."""
    prefs = user.get("preferences") or {}
    print("\n" + "=" * 70)
    print(f"{Colors.BOLD}{Colors.GREEN}        RECOMMENDATIONS FOR {user['name'].upper()}{Colors.ENDC}")
    print("=" * 70)
    print(f"\n{Colors.BOLD}Preferred categories:{Colors.ENDC} {', '.join(prefs.get('policy_categories') or ['health', 'life'])}")
    print(f"{Colors.BOLD}Risk tolerance:{Colors.ENDC} {prefs.get('risk_tolerance', 'medium')}")

    if not ranked:
        print(f"\n{Colors.YELLOW}No active policies match the preferred categories.{Colors.ENDC}")
        return

    for position, item in enumerate(ranked, start=1):
        policy = policies[item.policy]
        color = Colors.GREEN if item.score >= 85 else Colors.CYAN
        print(f"\n  {position}. {Colors.BOLD}{policy['name']}{Colors.ENDC} ({policy['category']})")
        print(f"     Score: {color}{item.score}/100{Colors.ENDC}")
        print(f"     Premium: ${item.custom_premium:,.2f}")
        for reason in item.reasons:
            print(f"     - {reason}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Preview policy recommendations for a user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m cli.recommend asha@example.com
  python -m cli.recommend asha@example.com --save
  python -m cli.recommend asha@example.com --json
        """
    )
    parser.add_argument("email", help="Email of a registered user")
    parser.add_argument(
        "--save", "-s",
        action="store_true",
        help="Store the result as a recommendation set for the user"
    )
    parser.add_argument(
        "--json", "-j",
        action="store_true",
        help="Output result as JSON only"
    )
    args = parser.parse_args()

    settings = get_settings()
    if not args.json:
        print_header(f"Scoring active policies for {args.email}...")
    try:
        db = get_database()
        user = db[Collections.USERS].find_one({"email": args.email.lower()})
    except PyMongoError as e:
        print(f"{Colors.RED}Error: Could not reach MongoDB: {e}{Colors.ENDC}")
        sys.exit(1)

    if user is None:
        print(f"{Colors.RED}Error: No user registered with {args.email}{Colors.ENDC}")
        sys.exit(1)

    engine = RecommendationEngine(limit=settings.recommendation_limit)
    try:
        ranked = engine.recommend(db, user)
    except NoActivePoliciesError as e:
        print(f"{Colors.RED}Error: {e}{Colors.ENDC}")
        sys.exit(1)

    policies = {p["_id"]: p for p in db[Collections.POLICIES].find({"_id": {"$in": [r.policy for r in ranked]}})}

    if args.json:
        print(json.dumps(serialize_document([r.model_dump() for r in ranked]), indent=2))
    else:
        print_result(user, ranked, policies)

    if args.save:
        recommendation_id = create_recommendation(
            db, user, ranked, generated_by="system", ttl_days=settings.record_ttl_days
        )
        if not args.json:
            print(f"\n{Colors.CYAN}Saved as recommendation:{Colors.ENDC} {recommendation_id}")


if __name__ == "__main__":
    main()
