"""iBarangay - User Model
Resident, staff and admin accounts with login-lockout tracking.
"""
import math

import bcrypt
from sqlalchemy import Index
from sqlalchemy.orm import validates

from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat


ROLES = ('resident', 'staff', 'admin')
STAFF_ROLES = ('staff', 'admin')


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='resident')
    avatar = db.Column(db.Text, nullable=True)
    address = db.Column(db.String(200), nullable=True)
    phone_number = db.Column(db.String(20), nullable=True)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    id_document_url = db.Column(db.String(500), nullable=True)

    # Login attempt tracking
    failed_login_attempts = db.Column(db.Integer, nullable=False, default=0)
    lockout_until = db.Column(db.DateTime, nullable=True)
    last_failed_login = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    __table_args__ = (
        Index('idx_user_role', 'role'),
        Index('idx_user_lockout_until', 'lockout_until'),
    )

    def __repr__(self):
        return f'<User {self.email}>'

    @validates('role')
    def _validate_role(self, key, value):
        if value not in ROLES:
            raise ValueError(f"Invalid role '{value}'")
        return value

    @validates('email')
    def _normalize_email(self, key, value):
        return (value or '').strip().lower()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def set_password(self, password: str):
        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        if not password or not self.password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))
        except ValueError:
            return False

    def is_locked_out(self, now=None) -> bool:
        now = now or utc_now()
        return self.lockout_until is not None and self.lockout_until > now

    def remaining_lockout_seconds(self, now=None) -> int:
        now = now or utc_now()
        if not self.is_locked_out(now):
            return 0
        return math.ceil((self.lockout_until - now).total_seconds())

    def to_dict(self, include_private: bool = False):
        data = {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'email': self.email,
            'role': self.role,
            'avatar': self.avatar or f"https://i.pravatar.cc/150?u={self.id}",
            'is_verified': bool(self.is_verified),
            'created_at': isoformat(self.created_at),
        }
        if include_private:
            data.update({
                'address': self.address,
                'phone_number': self.phone_number,
            })
        return data
