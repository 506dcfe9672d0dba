"""CITT Platform CLI tool (cittctl)."""

import typer
from sqlalchemy.engine import make_url

app = typer.Typer(name="cittctl", help="CITT Platform CLI")
db_app = typer.Typer(help="Database management commands")
audit_app = typer.Typer(help="Audit log maintenance")
app.add_typer(db_app, name="db")
app.add_typer(audit_app, name="audit")


def _server_connection():
    """PyMySQL connection to the server named in DATABASE_URL, without selecting a database."""
    import pymysql
    from backend.core.config import settings

    url = make_url(settings.DATABASE_URL)
    if not url.drivername.startswith("mysql"):
        typer.echo(f"❌ Not a MySQL URL: {url.drivername}")
        raise typer.Exit(code=1)

    conn = pymysql.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username,
        password=url.password or "",
    )
    return conn, url.database


@db_app.command("create")
def db_create():
    """Create the MySQL database if it doesn't exist."""
    conn, db_name = _server_connection()
    try:
        cursor = conn.cursor()
        cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{db_name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
        typer.echo(f"✅ Database '{db_name}' created (or already exists)")
    finally:
        conn.close()


@db_app.command("init")
def db_init():
    """Create all tables."""
    import backend.models  # noqa: F401
    from backend.db.base import Base
    from backend.db.session import engine

    Base.metadata.create_all(bind=engine)
    typer.echo(f"✅ Tables ready: {', '.join(sorted(Base.metadata.tables))}")


@db_app.command("seed")
def db_seed(
    demo: bool = typer.Option(None, "--demo/--no-demo", help="Also create one demo account per role"),
):
    """Seed default permissions, the super-admin and optional demo accounts."""
    from backend.core.config import settings
    from backend.db.session import SessionLocal
    from backend.db.seeds.seed_permissions import seed_permissions
    from backend.db.seeds.seed_super_admin import seed_super_admin
    from backend.db.seeds.seed_demo_accounts import seed_demo_accounts

    with_demo = settings.DEMO_ACCOUNTS if demo is None else demo
    db = SessionLocal()
    try:
        seed_permissions(db)
        seed_super_admin(db)
        if with_demo:
            seed_demo_accounts(db)
    finally:
        db.close()
    typer.echo("✅ All seeds applied")


@db_app.command("reset")
def db_reset():
    """Drop and recreate all tables (DANGER)."""
    confirm = typer.confirm("⚠️  This will DROP every table, audit logs included. Continue?")
    if not confirm:
        raise typer.Abort()
    import backend.models  # noqa: F401
    from backend.db.base import Base
    from backend.db.session import engine

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    typer.echo("✅ Tables dropped and recreated")


@audit_app.command("cleanup")
def audit_cleanup(
    days: int = typer.Option(None, min=1, help="Retention in days (default: AUDIT_RETENTION_DAYS)"),
):
    """Delete audit log entries older than the retention window."""
    from backend.core.config import settings
    from backend.db.session import SessionLocal
    from backend.services.audit_service import audit_service

    retention = days or settings.AUDIT_RETENTION_DAYS
    db = SessionLocal()
    try:
        deleted = audit_service.cleanup(db, retention)
    finally:
        db.close()
    typer.echo(f"✅ Deleted {deleted} audit log entries older than {retention} days")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the FastAPI server."""
    import uvicorn
    uvicorn.run("backend.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
