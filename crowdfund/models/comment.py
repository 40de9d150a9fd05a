from typing import Any, Dict, List, Optional

from crowdfund.utils.db import fetch_all, fetch_one, transaction


def insert_comment(cur, *, campaign_id: str, user_id: str, text: str) -> Dict[str, Any]:
    sql = """
    INSERT INTO comments (campaign_id, user_id, text)
    VALUES (%s, %s, %s)
    RETURNING id, campaign_id, user_id, text, created_at
    """
    cur.execute(sql, (campaign_id, user_id, text))
    return fetch_one(cur)


def get_comment(comment_id: str) -> Optional[Dict[str, Any]]:
    sql = "SELECT id, campaign_id, user_id, text, created_at FROM comments WHERE id = %s"
    with transaction() as cur:
        cur.execute(sql, (comment_id,))
        return fetch_one(cur)


def remove_comment(cur, comment_id: str) -> bool:
    cur.execute("DELETE FROM comments WHERE id = %s", (comment_id,))
    return cur.rowcount > 0


def select_comments(campaign_id: str) -> List[Dict[str, Any]]:
    sql = """
    SELECT c.id, c.campaign_id, c.user_id, c.text, c.created_at,
           u.name AS author_name, u.email AS author_email, u.avatar_url AS author_avatar_url
    FROM comments c
    JOIN users u ON u.id = c.user_id
    WHERE c.campaign_id = %s
    ORDER BY c.created_at DESC
    """
    with transaction() as cur:
        cur.execute(sql, (campaign_id,))
        return fetch_all(cur)
