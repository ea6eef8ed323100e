"""
Admin sessions.

Logging in produces an AdminSession that is kept in the Django session and
handed to admin views as ``request.admin_session``. It expires after
``admin_session_minutes``; logging out revokes it.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from functools import wraps

from django.contrib.auth import authenticate, get_user_model
from django.http import JsonResponse
from django.utils import timezone

from .conf import get_setting
from .exceptions import AuthenticationFailed, SessionExpired

logger = logging.getLogger(__name__)

SESSION_KEY = 'tableside_admin'


@dataclass(frozen=True)
class AdminSession:
    user_id: int
    email: str
    issued_at: datetime
    expires_at: datetime

    @property
    def is_expired(self):
        return timezone.now() >= self.expires_at

    def to_session(self):
        data = asdict(self)
        data['issued_at'] = self.issued_at.isoformat()
        data['expires_at'] = self.expires_at.isoformat()
        return data

    @classmethod
    def from_session(cls, data):
        return cls(
            user_id=data['user_id'],
            email=data['email'],
            issued_at=datetime.fromisoformat(data['issued_at']),
            expires_at=datetime.fromisoformat(data['expires_at']),
        )

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'email': self.email,
            'expires_at': self.expires_at.isoformat(),
        }


def _find_username(email):
    User = get_user_model()
    user = User.objects.filter(email__iexact=email).first()
    return user.get_username() if user else email


def login(request, email, password):
    """Check credentials and start an admin session on ``request``."""
    user = authenticate(request, username=_find_username(email), password=password)
    if user is None or not user.is_active or not user.is_staff:
        logger.warning("Admin login failed for %s", email)
        raise AuthenticationFailed()

    now = timezone.now()
    admin_session = AdminSession(
        user_id=user.pk,
        email=user.email or user.get_username(),
        issued_at=now,
        expires_at=now + timedelta(minutes=get_setting('admin_session_minutes')),
    )
    request.session.cycle_key()
    request.session[SESSION_KEY] = admin_session.to_session()
    logger.info("Admin %s logged in", admin_session.email)
    return admin_session


def logout(request):
    if request.session.pop(SESSION_KEY, None) is not None:
        logger.info("Admin session revoked")
    request.session.cycle_key()


def get_admin_session(request):
    """Current AdminSession, or raise if missing or expired."""
    data = request.session.get(SESSION_KEY)
    if not data:
        raise AuthenticationFailed('Login required')
    admin_session = AdminSession.from_session(data)
    if admin_session.is_expired:
        request.session.pop(SESSION_KEY, None)
        raise SessionExpired()
    return admin_session


def admin_required(view_func):
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            request.admin_session = get_admin_session(request)
        except AuthenticationFailed as exc:
            return JsonResponse(
                {'success': False, 'error': exc.code, 'message': str(exc.message)},
                status=exc.status_code,
            )
        return view_func(request, *args, **kwargs)
    return wrapper
