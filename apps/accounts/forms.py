"""
Admin forms for the email-keyed User model.
"""

from django.contrib.auth.forms import UserChangeForm, UserCreationForm

from .models import User


class AdminUserCreationForm(UserCreationForm):
    """Form for admin to create new users."""

    class Meta:
        model = User
        fields = ('email', 'first_name', 'last_name')


class AdminUserChangeForm(UserChangeForm):
    """Form for admin to edit existing users."""

    class Meta:
        model = User
        fields = ('email', 'first_name', 'last_name', 'receive_escalations')
