"""HTTP views for registration, token login and the user's own profile.

Token issuance is plain DRF ``authtoken``; there is no session or refresh
token handling beyond that.
"""

import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from gateway.errors import NotFound, Unauthorized, ValidationError
from gateway.responses import envelope

from .models import Profile
from .roles import role_of
from .schemas import LoginDTO, PasswordChangeDTO, ProfileReadDTO, ProfileUpdateDTO, RegisterDTO

logger = logging.getLogger(__name__)
User = get_user_model()


def profile_payload(user) -> dict:
    profile, _ = Profile.objects.get_or_create(user=user)
    return ProfileReadDTO(
        id=user.pk,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=role_of(user),
        phone=profile.phone,
        address=profile.address or {},
    ).model_dump()


@transaction.atomic
def update_profile(user, dto: ProfileUpdateDTO) -> None:
    """Apply a profile update: names on the auth user, phone and address on the profile."""
    user.first_name = dto.first_name
    user.last_name = dto.last_name
    user.save(update_fields=["first_name", "last_name"])

    profile, _ = Profile.objects.get_or_create(user=user)
    profile.phone = dto.phone
    if dto.address is not None:
        profile.address = dto.address.model_dump(exclude_none=True)
    profile.save()


class RegisterView(APIView):
    def post(self, request):
        dto = RegisterDTO.model_validate(request.data)
        if User.objects.filter(username=dto.email).exists():
            raise ValidationError("A user with this email already exists")

        with transaction.atomic():
            user = User.objects.create_user(
                username=dto.email,
                email=dto.email,
                password=dto.password,
                first_name=dto.first_name,
                last_name=dto.last_name,
            )
            Profile.objects.create(user=user, role=dto.role, phone=dto.phone)
            token = Token.objects.create(user=user)

        logger.info("user registered", extra={"user_id": user.pk, "role": dto.role})
        return envelope(profile_payload(user), status_code=status.HTTP_201_CREATED, token=token.key)


class LoginView(APIView):
    def post(self, request):
        dto = LoginDTO.model_validate(request.data)
        user = authenticate(request, username=dto.email.lower(), password=dto.password)
        if user is None:
            raise Unauthorized("Invalid credentials")
        token, _ = Token.objects.get_or_create(user=user)
        return envelope(profile_payload(user), token=token.key)


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return envelope(profile_payload(request.user))

    def put(self, request):
        dto = ProfileUpdateDTO.model_validate(request.data)
        update_profile(request.user, dto)
        return envelope(profile_payload(request.user))


class PasswordView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request):
        dto = PasswordChangeDTO.model_validate(request.data)
        user = User.objects.filter(pk=request.user.pk).first()
        if user is None:
            raise NotFound("User not found")
        if not user.check_password(dto.current_password):
            raise Unauthorized("Current password is incorrect")
        user.set_password(dto.new_password)
        user.save(update_fields=["password"])
        return envelope(message="Password updated successfully")
