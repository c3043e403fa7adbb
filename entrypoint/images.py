"""
Container image tag derivation for CI builds.

Primary tag is `<build number>-<short commit>`, e.g. `142-3f9c2ab`, so every
pushed image can be traced back to both the CI run and the source revision.
"""
from typing import Optional

from slugify import slugify

from entrypoint.config import Settings, get_settings
from entrypoint.schemas import ImageTags


SHORT_SHA_LENGTH = 7
MAX_TAG_LENGTH = 128

# Anything outside the registry tag alphabet gets replaced
_DISALLOWED_TAG_CHARS = r"[^A-Za-z0-9_.-]+"


def sanitize_tag(value: str) -> str:
    """
    Turn an arbitrary string (branch name, build id) into a valid image tag.

    Raises:
        ValueError: nothing usable is left after sanitizing
    """
    tag = slugify(
        value,
        lowercase=False,
        regex_pattern=_DISALLOWED_TAG_CHARS,
        separator="-",
        max_length=MAX_TAG_LENGTH,
    )
    # Tags may not start with a period or dash
    tag = tag.lstrip(".-")
    if not tag:
        raise ValueError(f"Cannot derive an image tag from {value!r}")
    return tag


def short_sha(commit: str) -> str:
    commit = commit.strip()
    if not commit:
        raise ValueError("GIT_COMMIT is empty")
    return commit[:SHORT_SHA_LENGTH]


def build_image_tags(settings: Optional[Settings] = None) -> ImageTags:
    """
    Compute the tags for the image built by the current CI run.

    Raises:
        ValueError: BUILD_NUMBER or GIT_COMMIT is missing
    """
    settings = settings or get_settings()
    if not settings.BUILD_NUMBER:
        raise ValueError("BUILD_NUMBER is not set")
    if not settings.GIT_COMMIT:
        raise ValueError("GIT_COMMIT is not set")

    tags = [sanitize_tag(f"{settings.BUILD_NUMBER}-{short_sha(settings.GIT_COMMIT)}")]

    if settings.GIT_BRANCH:
        branch = settings.GIT_BRANCH
        # Jenkins reports remote branches as origin/<name>
        if branch.startswith("origin/"):
            branch = branch[len("origin/"):]
        branch_tag = sanitize_tag(branch)
        if branch_tag not in tags:
            tags.append(branch_tag)

    if settings.IMAGE_TAG_LATEST and "latest" not in tags:
        tags.append("latest")

    return ImageTags(
        registry=settings.IMAGE_REGISTRY,
        repository=settings.IMAGE_REPOSITORY,
        tags=tags,
    )
