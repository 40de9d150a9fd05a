from typing import Any, Dict, List

from crowdfund.utils.db import fetch_all, fetch_one, transaction

DONATION_COLS = "d.id, d.campaign_id, d.user_id, d.amount::float AS amount, d.created_at"


def insert_donation(cur, *, campaign_id: str, user_id: str, amount: float) -> Dict[str, Any]:
    sql = f"""
    INSERT INTO donations AS d (campaign_id, user_id, amount)
    VALUES (%s, %s, %s)
    RETURNING {DONATION_COLS}
    """
    cur.execute(sql, (campaign_id, user_id, amount))
    return fetch_one(cur)


def sum_for_campaign(cur, campaign_id: str) -> float:
    """Authoritative raised total, read from the ledger."""
    cur.execute(
        "SELECT COALESCE(SUM(amount), 0)::float FROM donations WHERE campaign_id = %s",
        (campaign_id,),
    )
    return cur.fetchone()[0]


def list_donations_for_user(user_id: str) -> List[Dict[str, Any]]:
    sql = f"""
    SELECT {DONATION_COLS}, c.title AS campaign_title, c.description AS campaign_description,
           c.media_urls AS campaign_media_urls
    FROM donations d JOIN campaigns c ON c.id = d.campaign_id
    WHERE d.user_id = %s
    ORDER BY d.created_at DESC
    """
    with transaction() as cur:
        cur.execute(sql, (user_id,))
        return fetch_all(cur)


def recent_for_campaign(campaign_id: str, limit: int = 5) -> List[Dict[str, Any]]:
    sql = f"""
    SELECT {DONATION_COLS}, u.name AS donor_name, u.email AS donor_email
    FROM donations d JOIN users u ON u.id = d.user_id
    WHERE d.campaign_id = %s
    ORDER BY d.created_at DESC
    LIMIT %s
    """
    with transaction() as cur:
        cur.execute(sql, (campaign_id, limit))
        return fetch_all(cur)


def campaign_donation_stats(campaign_id: str) -> Dict[str, Any]:
    sql = """
    SELECT COUNT(*)::int AS count,
           COALESCE(SUM(amount), 0)::float AS amount,
           COALESCE(AVG(amount), 0)::float AS average
    FROM donations WHERE campaign_id = %s
    """
    with transaction() as cur:
        cur.execute(sql, (campaign_id,))
        return fetch_one(cur)


def donation_totals() -> Dict[str, Any]:
    sql = "SELECT COUNT(*)::int AS count, COALESCE(SUM(amount), 0)::float AS amount FROM donations"
    with transaction() as cur:
        cur.execute(sql)
        return fetch_one(cur)
