"""Shared test factories for payloads and models."""

from fuzzysearch.api.models import File


def make_file_payload(site_id=1234, **kwargs):
    """Build a raw match dict as the API returns it."""
    defaults = dict(
        id=site_id * 10,
        url=f"https://d.furaffinity.net/art/artist/{site_id}/image.png",
        filename=f"{site_id}.image.png",
        artists=["artist"],
        rating="general",
        hash=-6015839154432163840,
        distance=0,
        site="FurAffinity",
        site_info={"file_id": site_id + 1},
        searched_hash=None,
    )
    defaults.update(kwargs)
    return dict(site_id=site_id, **defaults)


def make_file(site_id=1234, **kwargs):
    """Build a File model with sensible defaults."""
    return File.model_validate(make_file_payload(site_id, **kwargs))


API_KEY = "test-api-key"
