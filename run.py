from crowdfund import create_app
import os

app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 5050))
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=port,
        debug=os.getenv("APP_ENV") == "development",
        use_reloader=False,
    )

# Local:
# docker compose up -d          (postgres + redis)
# alembic upgrade head
# python scripts/create_admin.py admin@example.com 'S3cure-pass' "Site Admin"
# PORT=5050 python run.py
# rq worker -u $REDIS_URL default   (only with USE_EMAIL_QUEUE=1)
