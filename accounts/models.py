from django.contrib.auth.models import AbstractUser
from django.db import models


# -----------------------------
# MODELS - accounts/models.py
# -----------------------------


class User(AbstractUser):
	email = models.EmailField(unique=True)
	phone_number = models.CharField(max_length=20, blank=True)
	USERNAME_FIELD = 'email'
	REQUIRED_FIELDS = ['username']

	@property
	def is_admin(self):
		return self.is_staff or self.is_superuser
