from typing import Any, Dict, List, Optional

from psycopg2.errors import UniqueViolation

from crowdfund.utils.db import fetch_all, fetch_one, transaction
from crowdfund.utils.errors import Conflict

USER_COLS = "id, email, name, role, require_password_reset, avatar_url, created_at, updated_at"


def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    """Includes password_hash; only the auth service should need it."""
    sql = f"SELECT {USER_COLS}, password_hash FROM users WHERE email = %s"
    with transaction() as cur:
        cur.execute(sql, (email,))
        return fetch_one(cur)


def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {USER_COLS} FROM users WHERE id = %s"
    with transaction() as cur:
        cur.execute(sql, (user_id,))
        return fetch_one(cur)


def get_password_hash(user_id: str) -> Optional[str]:
    with transaction() as cur:
        cur.execute("SELECT password_hash FROM users WHERE id = %s", (user_id,))
        row = cur.fetchone()
        return row[0] if row else None


def create_user(
    *, email: str, password_hash: str, name: str, role: str = "user"
) -> Dict[str, Any]:
    sql = f"""
    INSERT INTO users (email, password_hash, name, role)
    VALUES (%s, %s, %s, %s)
    RETURNING {USER_COLS}
    """
    try:
        with transaction() as cur:
            cur.execute(sql, (email, password_hash, name, role))
            return fetch_one(cur)
    except UniqueViolation:
        # lost a race with another signup for the same address
        raise Conflict("Email already exists")


def update_user(
    user_id: str,
    *,
    name: Optional[str] = None,
    email: Optional[str] = None,
    password_hash: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    sets, params = [], []
    if name is not None:
        sets.append("name = %s")
        params.append(name)
    if email is not None:
        sets.append("email = %s")
        params.append(email)
    if password_hash is not None:
        sets.append("password_hash = %s")
        params.append(password_hash)
    if avatar_url is not None:
        sets.append("avatar_url = %s")
        params.append(avatar_url or None)
    if not sets:
        return get_user_by_id(user_id)
    sets.append("updated_at = now()")
    sql = f"UPDATE users SET {', '.join(sets)} WHERE id = %s RETURNING {USER_COLS}"
    params.append(user_id)
    try:
        with transaction() as cur:
            cur.execute(sql, tuple(params))
            return fetch_one(cur)
    except UniqueViolation:
        raise Conflict("Email already exists")


def set_password(user_id: str, password_hash: str) -> bool:
    """Store a new password and lift the forced-reset flag."""
    sql = """
    UPDATE users
    SET password_hash = %s, require_password_reset = false, updated_at = now()
    WHERE id = %s
    """
    with transaction() as cur:
        cur.execute(sql, (password_hash, user_id))
        return cur.rowcount > 0


def lock_user(cur, user_id: str) -> Optional[Dict[str, Any]]:
    cur.execute(f"SELECT {USER_COLS} FROM users WHERE id = %s FOR UPDATE", (user_id,))
    return fetch_one(cur)


def count_admins(cur) -> int:
    """
    Lock every admin row, in id order, and return how many there are.
    Callers take this lock before any single user row so that concurrent
    role changes always acquire locks in the same order.
    """
    cur.execute("SELECT id FROM users WHERE role = 'admin' ORDER BY id FOR UPDATE")
    return len(cur.fetchall())


def set_role(cur, user_id: str, role: str) -> Dict[str, Any]:
    sql = f"""
    UPDATE users
    SET role = %s, require_password_reset = true, updated_at = now()
    WHERE id = %s
    RETURNING {USER_COLS}
    """
    cur.execute(sql, (role, user_id))
    return fetch_one(cur)


def list_users_with_stats() -> List[Dict[str, Any]]:
    sql = """
    SELECT u.id, u.email, u.name, u.role, u.require_password_reset, u.created_at,
           COALESCE(c.cnt, 0)::int AS campaigns_created,
           COALESCE(d.cnt, 0)::int AS donations_made,
           COALESCE(d.total, 0)::float AS total_donated
    FROM users u
    LEFT JOIN (
        SELECT creator_id, COUNT(*) AS cnt FROM campaigns GROUP BY creator_id
    ) c ON c.creator_id = u.id
    LEFT JOIN (
        SELECT user_id, COUNT(*) AS cnt, SUM(amount) AS total
        FROM donations GROUP BY user_id
    ) d ON d.user_id = u.id
    ORDER BY u.created_at DESC
    """
    with transaction() as cur:
        cur.execute(sql)
        return fetch_all(cur)


def user_counts() -> Dict[str, int]:
    sql = """
    SELECT COUNT(*)::int, COUNT(*) FILTER (WHERE role = 'admin')::int FROM users
    """
    with transaction() as cur:
        cur.execute(sql)
        total, admins = cur.fetchone()
        return {"total": total, "admins": admins}
