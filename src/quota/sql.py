"""SQL commands used by quota management package."""

CREATE_USAGE_TABLE = """
    CREATE TABLE IF NOT EXISTS ai_usage (
        user_id         text NOT NULL,
        model_id        text NOT NULL,
        usage_date      text NOT NULL,
        count           int NOT NULL DEFAULT 0,
        updated_at      timestamp with time zone,
        PRIMARY KEY(user_id, model_id, usage_date)
    );
    """

CREATE_USAGE_DATE_INDEX = """
    CREATE INDEX IF NOT EXISTS ai_usage_dates
        ON ai_usage (usage_date)
    """


INCREMENT_USAGE_PG = """
    INSERT INTO ai_usage (user_id, model_id, usage_date, count, updated_at)
    VALUES (%s, %s, %s, 1, %s)
    ON CONFLICT (user_id, model_id, usage_date)
    DO UPDATE SET count=ai_usage.count+1, updated_at=EXCLUDED.updated_at
    """


INCREMENT_USAGE_SQLITE = """
    INSERT INTO ai_usage (user_id, model_id, usage_date, count, updated_at)
    VALUES (?, ?, ?, 1, ?)
    ON CONFLICT (user_id, model_id, usage_date)
    DO UPDATE SET count=ai_usage.count+1, updated_at=excluded.updated_at
    """


SELECT_USAGE_PG = """
    SELECT count
      FROM ai_usage
     WHERE user_id=%s AND model_id=%s AND usage_date=%s LIMIT 1
    """


SELECT_USAGE_SQLITE = """
    SELECT count
      FROM ai_usage
     WHERE user_id=? AND model_id=? AND usage_date=? LIMIT 1
    """


SELECT_USER_USAGE_PG = """
    SELECT model_id, count
      FROM ai_usage
     WHERE user_id=%s AND usage_date=%s
     ORDER BY model_id
    """


SELECT_USER_USAGE_SQLITE = """
    SELECT model_id, count
      FROM ai_usage
     WHERE user_id=? AND usage_date=?
     ORDER BY model_id
    """
