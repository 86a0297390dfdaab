"""
Homesite – Setting group registry.

Each group is one JSON document in the config store. Groups with a
schema are saved through the merge path (they carry uploaded files),
the rest are replaced by whatever body the admin form posts.
"""

from dataclasses import dataclass

from app.services.merge import FieldKind, FieldSpec, GroupSchema


@dataclass(frozen=True)
class SettingGroup:
    key: str
    label: str
    topic: str | None = None
    schema: GroupSchema | None = None

    @property
    def merges(self) -> bool:
        return self.schema is not None


SERVICE_NAMES = ("buying", "selling", "invest")


def _service_fields(name: str) -> tuple[FieldSpec, ...]:
    return (
        FieldSpec((name, "title"), f"{name}_title"),
        FieldSpec((name, "message"), f"{name}_message"),
        FieldSpec((name, "photo"), f"service-{name}-photo", FieldKind.FILE),
    )


HERO = SettingGroup(
    key="heroSettings",
    label="hero settings",
    topic="hero-update-event",
    schema=GroupSchema((
        FieldSpec(("videoUrl",), "video", FieldKind.FILE),
        FieldSpec(("logoUrl",), "logo", FieldKind.FILE),
    )),
)

SERVICES = SettingGroup(
    key="services",
    label="services settings",
    topic="services-update-event",
    schema=GroupSchema(tuple(f for name in SERVICE_NAMES for f in _service_fields(name))),
)

ABOUT_ME = SettingGroup(
    key="aboutMeSettings",
    label="about me settings",
    topic="about-me-update-event",
    schema=GroupSchema((
        FieldSpec(("title",), "title"),
        FieldSpec(("description",), "description"),
        FieldSpec(("imageUrl",), "photo", FieldKind.FILE),
    )),
)

TESTIMONIALS = SettingGroup("testimonials", "testimonials", "testimonials-update-event")
VIDEO_GALLERY = SettingGroup("videoGallery", "video gallery", "video-gallery-update-event")
SOCIAL_MEDIA = SettingGroup("socialMedia", "social media settings", "social-media-update-event")
PHONE = SettingGroup("phone", "phone settings", "phone-update-event")

AUTH = SettingGroup("auth", "admin credentials")
EMAIL = SettingGroup("emailSettings", "email settings")

# route path (under /api) -> group, for the groups replaced wholesale
REPLACE_ROUTES = {
    "testimonials": TESTIMONIALS,
    "video-gallery": VIDEO_GALLERY,
    "social-media/settings": SOCIAL_MEDIA,
    "phone/settings": PHONE,
}

UPDATE_TOPICS = tuple(
    g.topic for g in (HERO, SERVICES, ABOUT_ME, TESTIMONIALS, VIDEO_GALLERY, SOCIAL_MEDIA, PHONE)
)
