"""
Database initialization script.
Creates all tables from models, stores the default site settings and
optionally creates the first admin account.

Usage:
    python -m ibarangay.scripts.init_db
    python -m ibarangay.scripts.init_db --admin-email admin@example.com --admin-password Secret123

The admin credentials can also come from ADMIN_EMAIL / ADMIN_PASSWORD.
"""
import os
import argparse

from ibarangay import db
from ibarangay.app import create_app
from ibarangay.models import SiteSettings, User
from ibarangay.utils.validators import ValidationError, validate_email, validate_password


def ensure_admin(email: str, password: str, first_name: str = 'Barangay', last_name: str = 'Admin'):
    """Create an admin account unless the email is already registered. Returns the user."""
    email = validate_email(email)
    password = validate_password(password)

    existing = User.query.filter_by(email=email).first()
    if existing:
        print(f"  User {email} already exists (role={existing.role}), skipping.")
        return existing

    admin = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        role='admin',
        is_verified=True,
    )
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    print(f"  Admin account created: {email}")
    return admin


def init_database(admin_email: str = None, admin_password: str = None, app=None):
    app = app or create_app()
    with app.app_context():
        print("Creating tables...")
        db.create_all()

        settings = SiteSettings.get_or_create()
        print(f"  Site settings ready ({settings.barangay_name}).")

        if admin_email and admin_password:
            print("Checking admin account...")
            ensure_admin(admin_email, admin_password)
        elif admin_email or admin_password:
            print("  WARNING: both admin email and password are needed; skipping admin creation.")

        print("Database initialization complete!")


def main():
    parser = argparse.ArgumentParser(description='Initialize the iBarangay database')
    parser.add_argument('--admin-email', '-e', default=os.getenv('ADMIN_EMAIL'), help='Email for the first admin account')
    parser.add_argument('--admin-password', '-p', default=os.getenv('ADMIN_PASSWORD'), help='Password for the first admin account')
    args = parser.parse_args()

    try:
        init_database(args.admin_email, args.admin_password)
    except ValidationError as e:
        parser.error(f"{e.field}: {e.message}")


if __name__ == '__main__':
    main()
