"""
Authorization Gate Tests
------------------------
Test bearer extraction, authentication outcomes, permission checks in
ALL/ANY mode and role allow-lists.
"""

import pytest
from datetime import timedelta

from school_admin.auth.authorization import (
    AuthorizationMode,
    authenticate_bearer,
    authorize,
    authorize_by_role,
    extract_bearer_token,
    normalize_role,
)
from school_admin.auth.jwt_utils import create_access_token
from school_admin.auth.models import AccessTokenClaims
from school_admin.auth.results import AuthErrorCode, AuthFailure


class TestExtractBearerToken:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer abc.def.ghi", "abc.def.ghi"),
            ("bearer abc", "abc"),
            ("  Bearer   abc  ", "abc"),
            ("Basic dXNlcjpwYXNz", None),
            ("Bearer", None),
            ("Bearer   ", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract(self, header, expected):
        assert extract_bearer_token(header) == expected


class TestAuthenticateBearer:
    """Missing, expired and invalid tokens are distinct failures."""

    def test_missing_token(self, test_settings):
        result = authenticate_bearer(None, app_settings=test_settings)

        assert isinstance(result, AuthFailure)
        assert result.code == AuthErrorCode.TOKEN_MISSING
        assert result.message == "Access denied. No token provided."

    def test_valid_token(self, test_settings, frozen_clock):
        token = create_access_token(
            4, "TEACHER", ["VIEW_STUDENT"],
            issued_at=frozen_clock.now(), app_settings=test_settings,
        )

        result = authenticate_bearer(token, now=frozen_clock.now(), app_settings=test_settings)

        assert isinstance(result, AccessTokenClaims)
        assert result.user_id == 4
        assert result.permissions == ["VIEW_STUDENT"]

    def test_expired_token(self, test_settings, frozen_clock):
        token = create_access_token(
            4, "TEACHER", [], issued_at=frozen_clock.now(), app_settings=test_settings
        )
        frozen_clock.advance(minutes=16)

        result = authenticate_bearer(token, now=frozen_clock.now(), app_settings=test_settings)

        assert isinstance(result, AuthFailure)
        assert result.code == AuthErrorCode.TOKEN_EXPIRED
        assert result.message == "Token expired. Please login again."

    def test_invalid_token(self, test_settings):
        result = authenticate_bearer("not.a.token", app_settings=test_settings)

        assert isinstance(result, AuthFailure)
        assert result.code == AuthErrorCode.TOKEN_INVALID
        assert result.message == "Invalid token."

    def test_omitted_permissions_default_to_empty(self, test_settings, frozen_clock):
        many = [f"PERM_{i}" for i in range(40)]
        token = create_access_token(
            2, "ADMIN", many, issued_at=frozen_clock.now(), app_settings=test_settings
        )

        result = authenticate_bearer(token, now=frozen_clock.now(), app_settings=test_settings)

        assert result.permissions == []
        assert result.permissions_embedded is False


class TestAuthorize:
    """Permission checks over embedded claims."""

    def test_all_mode_requires_every_permission(self, make_claims):
        claims = make_claims("REGISTRAR", ["CREATE_STUDENT", "VIEW_STUDENT"])

        assert authorize(claims, ["CREATE_STUDENT", "VIEW_STUDENT"]) is claims
        denied = authorize(claims, ["CREATE_STUDENT", "MANAGE_FEES"])
        assert isinstance(denied, AuthFailure)
        assert denied.code == AuthErrorCode.INSUFFICIENT_PERMISSION
        assert denied.message == "Insufficient permissions."
        assert denied.required == ["CREATE_STUDENT", "MANAGE_FEES"]

    def test_any_mode_requires_one_permission(self, make_claims):
        claims = make_claims("TEACHER", ["VIEW_STUDENT"])

        allowed = authorize(claims, ["VIEW_REPORT", "VIEW_STUDENT"], AuthorizationMode.ANY)
        denied = authorize(claims, ["VIEW_REPORT", "MANAGE_FEES"], AuthorizationMode.ANY)

        assert allowed is claims
        assert isinstance(denied, AuthFailure)

    def test_empty_requirement(self, make_claims):
        claims = make_claims("STUDENT")

        assert authorize(claims, [], AuthorizationMode.ALL) is claims
        assert isinstance(authorize(claims, [], AuthorizationMode.ANY), AuthFailure)

    @pytest.mark.parametrize("mode", [AuthorizationMode.ALL, AuthorizationMode.ANY])
    @pytest.mark.parametrize(
        "required",
        [[], ["VIEW_REPORT"], ["DOES_NOT_EXIST"], ["MANAGE_FEES", "NOT_A_PERMISSION"]],
    )
    def test_super_admin_bypass(self, make_claims, mode, required):
        claims = make_claims("SUPER_ADMIN", [])

        assert authorize(claims, required, mode) is claims

    def test_student_with_no_permissions_denied(self, make_claims):
        claims = make_claims("STUDENT", [])

        assert isinstance(authorize(claims, ["VIEW_STUDENT"]), AuthFailure)


class TestAuthorizeByRole:
    def test_allowed_role(self, make_claims):
        claims = make_claims("ADMIN")

        assert authorize_by_role(claims, ["SUPER_ADMIN", "ADMIN"]) is claims

    def test_denied_role(self, make_claims):
        result = authorize_by_role(make_claims("TEACHER"), ["SUPER_ADMIN", "ADMIN"])

        assert isinstance(result, AuthFailure)
        assert result.code == AuthErrorCode.INSUFFICIENT_ROLE

    def test_role_ids_accepted(self, make_claims):
        assert authorize_by_role(make_claims("ADMIN"), [1, 2]).role == "ADMIN"
        assert isinstance(authorize_by_role(make_claims("STUDENT"), [1, 2]), AuthFailure)

    @pytest.mark.parametrize("stored_role", ["admin", " Admin ", "2"])
    def test_caller_role_normalized(self, make_claims, stored_role):
        claims = make_claims(stored_role)

        assert authorize_by_role(claims, ["ADMIN"]) is claims

    @pytest.mark.parametrize("stored_role", ["PRINCIPAL", "9", ""])
    def test_unknown_caller_role_denied(self, make_claims, stored_role):
        result = authorize_by_role(make_claims(stored_role), ["SUPER_ADMIN", "ADMIN"])

        assert isinstance(result, AuthFailure)
        assert result.code == AuthErrorCode.INSUFFICIENT_ROLE

    def test_super_admin_not_implicitly_allowed_by_role(self, make_claims):
        result = authorize_by_role(make_claims("SUPER_ADMIN"), ["TEACHER"])

        assert isinstance(result, AuthFailure)


class TestNormalizeRole:
    @pytest.mark.parametrize(
        "role,expected",
        [(1, "SUPER_ADMIN"), (5, "STUDENT"), ("3", "REGISTRAR"), ("teacher", "TEACHER")],
    )
    def test_normalize(self, role, expected):
        assert normalize_role(role) == expected

    @pytest.mark.parametrize("role", [0, 6, "PRINCIPAL", "", True])
    def test_unknown_role(self, role):
        with pytest.raises(ValueError):
            normalize_role(role)


class TestClaimsFreshness:
    """Embedded permissions are a snapshot until the token expires."""

    def test_token_keeps_minted_permissions(self, test_settings, frozen_clock, permissions_store):
        token = create_access_token(
            4, "TEACHER", ["VIEW_STUDENT"],
            issued_at=frozen_clock.now(), app_settings=test_settings,
        )
        permissions_store.grants["TEACHER"] = []
        frozen_clock.advance(minutes=14)

        claims = authenticate_bearer(token, now=frozen_clock.now(), app_settings=test_settings)

        assert claims.permissions == ["VIEW_STUDENT"]
        assert claims.exp - claims.iat == timedelta(minutes=15)
