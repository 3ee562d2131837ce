#!/usr/bin/env python3
"""
Report inconsistencies in the askbox data files.

Finds replies whose thread root no longer exists and questions that
reference users missing from the users file. With --fix, orphaned replies
are deleted.

Usage:
  python scripts/check_data_files.py [--data-dir DIR] [--fix]
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to path to import from askbox
sys.path.append(str(Path(__file__).parent.parent))

from askbox.config import Settings, get_settings
from askbox.repositories import QuestionStore, UserDirectory


def check_data_files(settings: Settings, fix: bool = False) -> int:
    """Print a report and return the number of problems found."""
    store = QuestionStore(settings.questions_path)
    store.load()
    users = UserDirectory(settings.users_path)
    users.load()

    user_ids = {user.id for user in users.list_users()}
    orphans = store.orphaned_replies()
    unknown_users = [
        question.id
        for root_id in store.thread_index
        for question in store.thread(root_id)
        if question.from_user_id not in user_ids or question.to_user_id not in user_ids
    ]

    print(f"Questions: {len(store)}  Threads: {len(store.thread_index)}  Users: {len(users)}")
    print(f"Found {len(orphans)} orphaned replies: {orphans}")
    print(f"Found {len(unknown_users)} questions with unknown users: {sorted(unknown_users)}")

    if fix and orphans:
        for question_id in orphans:
            store.delete(question_id)
        print(f"✓ Deleted {len(orphans)} orphaned replies")

    return len(orphans) + len(unknown_users)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check askbox data files.")
    parser.add_argument('--data-dir', help='Directory holding questions.txt and users.txt')
    parser.add_argument('--fix', action='store_true', help='Delete orphaned replies')
    args = parser.parse_args()
    settings = Settings(data_dir=args.data_dir) if args.data_dir else get_settings()
    problems = check_data_files(settings, fix=args.fix)
    sys.exit(1 if problems and not args.fix else 0)
