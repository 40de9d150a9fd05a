from typing import Any, Dict, List, Optional, Tuple

from crowdfund.utils.db import fetch_all, fetch_one, transaction

CONTACT_COLS = """
    ct.id, ct.name, ct.email, ct.subject, ct.message, ct.status, ct.user_id,
    ct.admin_response, ct.responded_by, ct.responded_at, ct.created_at, ct.updated_at
"""


def create_contact(
    *, name: str, email: str, subject: str, message: str, user_id: Optional[str]
) -> Dict[str, Any]:
    sql = f"""
    INSERT INTO contacts AS ct (name, email, subject, message, user_id)
    VALUES (%s, %s, %s, %s, %s)
    RETURNING {CONTACT_COLS}
    """
    with transaction() as cur:
        cur.execute(sql, (name, email, subject, message, user_id))
        return fetch_one(cur)


def get_contact(contact_id: str) -> Optional[Dict[str, Any]]:
    sql = f"""
    SELECT {CONTACT_COLS},
           su.name AS sender_name, ru.name AS responder_name, ru.email AS responder_email
    FROM contacts ct
    LEFT JOIN users su ON su.id = ct.user_id
    LEFT JOIN users ru ON ru.id = ct.responded_by
    WHERE ct.id = %s
    """
    with transaction() as cur:
        cur.execute(sql, (contact_id,))
        return fetch_one(cur)


def lock_contact(cur, contact_id: str) -> Optional[Dict[str, Any]]:
    cur.execute(f"SELECT {CONTACT_COLS} FROM contacts ct WHERE ct.id = %s FOR UPDATE", (contact_id,))
    return fetch_one(cur)


def update_contact(
    cur,
    contact_id: str,
    *,
    status: str,
    admin_response: Optional[str] = None,
    responded_by: Optional[str] = None,
) -> Dict[str, Any]:
    if admin_response is not None:
        sql = f"""
        UPDATE contacts ct
        SET status = %s, admin_response = %s, responded_by = %s,
            responded_at = now(), updated_at = now()
        WHERE ct.id = %s
        RETURNING {CONTACT_COLS}
        """
        cur.execute(sql, (status, admin_response, responded_by, contact_id))
    else:
        sql = f"""
        UPDATE contacts ct SET status = %s, updated_at = now()
        WHERE ct.id = %s
        RETURNING {CONTACT_COLS}
        """
        cur.execute(sql, (status, contact_id))
    return fetch_one(cur)


def list_contacts(
    *, page: int = 1, limit: int = 10, status: Optional[str] = None
) -> Tuple[List[Dict[str, Any]], int]:
    where_sql, params = "", []
    if status:
        where_sql = "WHERE ct.status = %s"
        params.append(status)
    sql = f"""
    SELECT {CONTACT_COLS}
    FROM contacts ct
    {where_sql}
    ORDER BY ct.created_at DESC
    LIMIT %s OFFSET %s
    """
    with transaction() as cur:
        cur.execute(sql, tuple(params) + (limit, (page - 1) * limit))
        rows = fetch_all(cur)
        cur.execute(f"SELECT COUNT(*)::int FROM contacts ct {where_sql}", tuple(params))
        total = cur.fetchone()[0]
    return rows, total


def list_contacts_for_user(user_id: str) -> List[Dict[str, Any]]:
    sql = f"""
    SELECT {CONTACT_COLS}
    FROM contacts ct
    WHERE ct.user_id = %s
    ORDER BY ct.created_at DESC
    """
    with transaction() as cur:
        cur.execute(sql, (user_id,))
        return fetch_all(cur)


def contact_counts() -> Dict[str, int]:
    with transaction() as cur:
        cur.execute("SELECT status::text, COUNT(*)::int FROM contacts GROUP BY status")
        counts = {"unread": 0, "in-progress": 0, "resolved": 0}
        for status, cnt in cur.fetchall():
            counts[status] = cnt
    counts["total"] = sum(counts.values())
    return counts
