"""
Models package for the gym ledger application.
Contains the domain records: members, payments and the settings singleton.
"""

from .gym_settings import DEFAULT_SETTINGS, GymSettings
from .member import Gender, Member, MemberStatus, RenewDuration, compute_expiry_date
from .payment import Payment, PaymentMethod, PaymentType

__all__ = [
    'DEFAULT_SETTINGS',
    'Gender',
    'GymSettings',
    'Member',
    'MemberStatus',
    'Payment',
    'PaymentMethod',
    'PaymentType',
    'RenewDuration',
    'compute_expiry_date',
]
