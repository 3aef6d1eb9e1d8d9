from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.utils.translation import gettext_lazy as _
from .managers import CustomUserManager


class CustomUser(AbstractBaseUser, PermissionsMixin):
    """
    Studio team member.
    Uses email as the unique auth field. `at_capacity` is the self-reported
    workload flag that the scoring engine reads when ranking the user's tasks.
    """
    email = models.EmailField(
        _('email_address'),
        unique=True
    )

    username = models.CharField(
        _('username'),
        max_length=150,
        blank=False,
        unique=True,
        null=True
    )

    first_name = models.CharField(_('firstname'), max_length=150, blank=True)
    last_name = models.CharField(_('lastname'), max_length=150, blank=True)
    # Core permissions fields for superuser capabilities
    is_staff = models.BooleanField(
        _('staff status'),
        default=False,
        help_text=_('Designates whether the user can log into this admin site.'),
    )
    is_active = models.BooleanField(
        _('active'),
        default=True,
        help_text=_(
            'Designates whether this user should be treated as active. '
            'Unselect this instead of deleting accounts.'
        ),
    )
    date_joined = models.DateTimeField(_('date joined'), auto_now_add=True)

    timezone = models.CharField(
        _('Timezone'),
        max_length=60,
        default='UTC',
        help_text=_('User timezone for calendar display.'),
    )

    at_capacity = models.BooleanField(
        _('at capacity'),
        default=False,
        help_text=_('When set, low-priority admin work owned by this user is penalised in the ranking.'),
    )

    # ------------------ Model Configuration ------------------
    objects = CustomUserManager()

    # The field used for authentication (login)
    USERNAME_FIELD = 'email'

    # Fields required when creating a user via the createsuperuser command
    REQUIRED_FIELDS = ['username']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')

    def get_full_name(self):
        """Returns the first_name plus the last_name, with a space in between."""
        full_name = f'{self.first_name} {self.last_name}'.strip()
        return full_name or self.username or self.email

    def get_short_name(self):
        """Returns the short name for the user."""
        return self.first_name or self.username or self.email

    def __str__(self):
        return self.email
