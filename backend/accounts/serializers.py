from django.contrib.auth import authenticate
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from rest_framework import serializers

User = get_user_model()


def normalize_email(value):
    return str(value or "").strip().lower()


def is_valid_email(value):
    try:
        validate_email(value)
    except DjangoValidationError:
        return False
    return True


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email", "role"]


class StudentRowSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "createdAt"]


def authenticate_with_role(email, password, role):
    """Return the user for valid credentials of the given role, else None."""
    email = normalize_email(email)
    if not email or not password:
        return None
    user = User.objects.filter(email__iexact=email, role=role).first()
    if not user:
        return None
    return authenticate(username=user.username, password=password)
