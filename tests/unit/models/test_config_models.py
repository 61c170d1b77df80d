"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from pagesdeploy.models.config import (
    MAX_BRANCH_LENGTH,
    ActionInputs,
    CloudflareConfig,
    validate_branch_name,
)


def _cloudflare() -> CloudflareConfig:
    return CloudflareConfig(
        account_id="acct-1",
        api_key="cf-secret",
        email="ops@acme.dev",
        project_name="site",
    )


@pytest.mark.unit
class TestValidateBranchName:
    """Tests for git branch name validation."""

    @pytest.mark.parametrize(
        "branch", ["main", "feature/search", "release-1.2", "user_name/fix-42"]
    )
    def test_valid_names(self, branch: str) -> None:
        """Test common branch names are accepted."""
        assert validate_branch_name(branch) == branch

    @pytest.mark.parametrize(
        "branch",
        ["a..b", "has space", "ends/", "/starts", "a//b", "ends.", "a@{b", "@", "x:y"],
    )
    def test_invalid_names(self, branch: str) -> None:
        """Test names git would reject are refused."""
        with pytest.raises(ValueError, match="Invalid branch name"):
            validate_branch_name(branch)

    def test_too_long(self) -> None:
        """Test overly long names are refused."""
        with pytest.raises(ValueError, match="characters or less"):
            validate_branch_name("b" * (MAX_BRANCH_LENGTH + 1))


@pytest.mark.unit
class TestActionInputs:
    """Tests for ActionInputs."""

    def test_single_target(self) -> None:
        """Test one target is allowed."""
        assert ActionInputs(cloudflare=_cloudflare(), preview=True).preview

    def test_multiple_targets(self) -> None:
        """Test targets cannot be combined."""
        with pytest.raises(ValidationError, match="Choose one"):
            ActionInputs(cloudflare=_cloudflare(), preview=True, branch="dev")

    def test_empty_branch_is_none(self) -> None:
        """Test an empty branch input means no branch."""
        assert ActionInputs(cloudflare=_cloudflare(), branch="").branch is None

    def test_secrets_are_hidden(self) -> None:
        """Test the API key and token are not shown in repr."""
        inputs = ActionInputs(cloudflare=_cloudflare(), github_token="gh-secret")
        assert "gh-secret" not in repr(inputs)
        assert "cf-secret" not in repr(inputs)
