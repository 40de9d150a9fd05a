#!/usr/bin/env python3
"""
Rebuild every campaign's raised_amount (and funded status) from the
donations ledger. Safe to run repeatedly; a second run updates nothing.

Usage: python scripts/recalculate_totals.py
"""
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from crowdfund.services.donation_service import reconcile_all_campaigns


def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    summary = reconcile_all_campaigns()
    print(f"Checked {summary['campaigns']} campaigns, updated {summary['updated']}.")


if __name__ == "__main__":
    main()
