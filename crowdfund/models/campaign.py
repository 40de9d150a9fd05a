from typing import Any, Dict, List, Optional, Sequence, Tuple

from psycopg2.extras import Json

from crowdfund.utils.db import fetch_all, fetch_one, transaction

CAMPAIGN_COLS = """
    c.id, c.title, c.description, c.category,
    c.goal_amount::float AS goal_amount, c.raised_amount::float AS raised_amount,
    c.deadline, c.status, c.creator_id, c.fund_utilization_plan, c.media_urls,
    c.comment_ids::text[] AS comment_ids, c.moderation_note, c.moderated_by, c.moderated_at,
    c.created_at, c.updated_at
"""

CREATOR_COLS = """
    u.name AS creator_name, u.email AS creator_email, u.avatar_url AS creator_avatar_url
"""


def _shape(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Fold the joined creator_* columns into a nested ``creator`` dict."""
    if row is None:
        return None
    if "creator_name" in row:
        row["creator"] = {
            "id": row["creator_id"],
            "name": row.pop("creator_name"),
            "email": row.pop("creator_email"),
            "avatar_url": row.pop("creator_avatar_url"),
        }
    return row


def insert_campaign(
    *,
    title: str,
    description: str,
    category: str,
    goal_amount: float,
    deadline,
    creator_id: str,
    status: str,
    fund_utilization_plan: Any,
    media_urls: Sequence[str],
) -> Dict[str, Any]:
    sql = """
    INSERT INTO campaigns (title, description, category, goal_amount, deadline,
                           creator_id, status, fund_utilization_plan, media_urls)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
    RETURNING id
    """
    with transaction() as cur:
        cur.execute(
            sql,
            (
                title,
                description,
                category,
                goal_amount,
                deadline,
                creator_id,
                status,
                Json(fund_utilization_plan),
                list(media_urls),
            ),
        )
        campaign_id = cur.fetchone()[0]
    return get_campaign(campaign_id)


def get_campaign(campaign_id: str) -> Optional[Dict[str, Any]]:
    sql = f"""
    SELECT {CAMPAIGN_COLS}, {CREATOR_COLS}
    FROM campaigns c JOIN users u ON u.id = c.creator_id
    WHERE c.id = %s
    """
    with transaction() as cur:
        cur.execute(sql, (campaign_id,))
        return _shape(fetch_one(cur))


def list_campaigns(
    *,
    statuses: Optional[Sequence[str]] = None,
    page: int = 1,
    limit: int = 10,
    category: Optional[str] = None,
    search: Optional[str] = None,
    search_description: bool = False,
    needs_funding: bool = False,
    sort: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Filtered, paginated campaign listing. Returns (rows, total matching).
    Each row carries creator info plus donation_count/avg_donation.
    """
    where, params = [], []
    if statuses:
        where.append("c.status = ANY(%s::campaign_status[])")
        params.append(list(statuses))
    if category:
        where.append("c.category = %s")
        params.append(category)
    if search:
        if search_description:
            where.append("(c.title ILIKE %s OR c.description ILIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])
        else:
            where.append("c.title ILIKE %s")
            params.append(f"%{search}%")
    if needs_funding:
        where.append("c.raised_amount < c.goal_amount")
    where_sql = f"WHERE {' AND '.join(where)}" if where else ""

    if sort == "urgency":
        order_sql = """
        ORDER BY (c.goal_amount - c.raised_amount) / c.goal_amount DESC,
                 c.deadline ASC, c.created_at DESC
        """
    else:
        order_sql = "ORDER BY c.created_at DESC"

    sql = f"""
    SELECT {CAMPAIGN_COLS}, {CREATOR_COLS},
           COALESCE(d.cnt, 0)::int AS donation_count,
           COALESCE(d.avg_amount, 0)::float AS avg_donation
    FROM campaigns c
    JOIN users u ON u.id = c.creator_id
    LEFT JOIN (
        SELECT campaign_id, COUNT(*) AS cnt, AVG(amount) AS avg_amount
        FROM donations GROUP BY campaign_id
    ) d ON d.campaign_id = c.id
    {where_sql}
    {order_sql}
    LIMIT %s OFFSET %s
    """
    count_sql = f"SELECT COUNT(*)::int FROM campaigns c {where_sql}"
    with transaction() as cur:
        cur.execute(sql, tuple(params) + (limit, (page - 1) * limit))
        rows = [_shape(r) for r in fetch_all(cur)]
        cur.execute(count_sql, tuple(params))
        total = cur.fetchone()[0]
    return rows, total


def list_campaigns_by_creator(creator_id: str) -> List[Dict[str, Any]]:
    sql = f"""
    SELECT {CAMPAIGN_COLS}
    FROM campaigns c
    WHERE c.creator_id = %s
    ORDER BY c.created_at DESC
    """
    with transaction() as cur:
        cur.execute(sql, (creator_id,))
        return fetch_all(cur)


def list_campaign_ids() -> List[str]:
    with transaction() as cur:
        cur.execute("SELECT id FROM campaigns ORDER BY created_at")
        return [r[0] for r in cur.fetchall()]


def lock_campaign(cur, campaign_id: str) -> Optional[Dict[str, Any]]:
    cur.execute(
        f"SELECT {CAMPAIGN_COLS} FROM campaigns c WHERE c.id = %s FOR UPDATE",
        (campaign_id,),
    )
    return fetch_one(cur)


def set_funding(
    cur, campaign_id: str, raised_amount: float, status: str
) -> Dict[str, Any]:
    sql = f"""
    UPDATE campaigns c
    SET raised_amount = %s, status = %s, updated_at = now()
    WHERE c.id = %s
    RETURNING {CAMPAIGN_COLS}
    """
    cur.execute(sql, (raised_amount, status, campaign_id))
    return fetch_one(cur)


def set_moderation(
    cur, campaign_id: str, *, status: str, note: Optional[str], moderator_id: str
) -> Dict[str, Any]:
    sql = f"""
    UPDATE campaigns c
    SET status = %s, moderation_note = %s, moderated_by = %s,
        moderated_at = now(), updated_at = now()
    WHERE c.id = %s
    RETURNING {CAMPAIGN_COLS}
    """
    cur.execute(sql, (status, note, moderator_id, campaign_id))
    return fetch_one(cur)


def attach_comment(cur, campaign_id: str, comment_id: str) -> None:
    cur.execute(
        "UPDATE campaigns SET comment_ids = array_append(comment_ids, %s::uuid) WHERE id = %s",
        (comment_id, campaign_id),
    )


def detach_comment(cur, campaign_id: str, comment_id: str) -> None:
    cur.execute(
        "UPDATE campaigns SET comment_ids = array_remove(comment_ids, %s::uuid) WHERE id = %s",
        (comment_id, campaign_id),
    )


def campaign_counts() -> Dict[str, int]:
    sql = "SELECT status::text, COUNT(*)::int FROM campaigns GROUP BY status"
    with transaction() as cur:
        cur.execute(sql)
        counts = {s: 0 for s in ("pending", "approved", "rejected", "completed")}
        for status, cnt in cur.fetchall():
            counts[status] = cnt
    counts["total"] = sum(counts.values())
    return counts
