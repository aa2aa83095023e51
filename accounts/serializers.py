# ----------------------------------
# SERIALIZERS - accounts/serializers.py
# ----------------------------------
from rest_framework import serializers
from django.contrib.auth import get_user_model
from rest_framework.validators import UniqueValidator
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "username", "phone_number", "role"]

    def get_role(self, obj):
        return "admin" if obj.is_admin else "user"


class RegisterSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(
        validators=[UniqueValidator(queryset=User.objects.all())]
    )

    class Meta:
        model = User
        fields = ("email", "password", "username", "phone_number")
        extra_kwargs = {
            "password": {"write_only": True},
            "username": {"required": False, "allow_blank": True},
            "phone_number": {"required": False, "allow_blank": True},
        }

    def validate_password(self, value):
        try:
            validate_password(value)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.messages)
        return value

    def create(self, validated_data):
        email = validated_data.get("email")
        username = validated_data.get("username") or (
            email.split("@")[0] if email else None
        )
        # usernames stay unique even when two emails share a local part
        if User.objects.filter(username=username).exists():
            username = email

        return User.objects.create_user(
            username=username,
            email=email,
            password=validated_data.get("password"),
            phone_number=validated_data.get("phone_number", ""),
        )
