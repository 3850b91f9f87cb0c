"""Typed views over the open metadata bag carried by generated content.

Producers write whatever keys they like; the lifecycle core reads them
through one of the known shapes below. Unknown keys are always kept, so a
model dumped back with ``as_dict()`` loses nothing that was stored.
"""
import json
import logging
from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from contentflow.models.content import ContentType
from contentflow.utils.helpers import snake_case_keys, strip_html

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = "Social Media"
DEFAULT_MODULE_SLUG = "social-factory"


class _Metadata(BaseModel):
    """Keys shared by every producer: approval bookkeeping and workflow resume."""

    model_config = ConfigDict(extra="allow")

    shape: ClassVar[str] = "opaque"

    resume_webhook_url: str | None = None
    approved_at: str | None = None
    approval_feedback: str | None = None
    module_id: str | None = None
    module_name: str | None = None
    client_email: str | None = None
    original_input: dict[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GeneratedPost(BaseModel):
    model_config = ConfigDict(extra="allow")

    post: str | None = None
    caption: str | None = None
    content: str | None = None
    hashtags: list[str] | str | None = None
    call_to_action: str | None = None
    emojis: list[str] | str | None = None


class SocialPostMetadata(_Metadata):
    shape: ClassVar[str] = "social_post"

    platform: str | None = None
    target_platform: str | None = None
    networks: list[str] | None = None
    selected_networks: list[str] | None = None
    post_content: str | None = None
    content: str | None = None
    caption: str | None = None
    hashtags: list[str] | str | None = None
    call_to_action: str | None = None
    cta: str | None = None
    emojis: list[str] | str | None = None
    generated_content: GeneratedPost | None = None
    output: GeneratedPost | None = None
    result: GeneratedPost | None = None
    workflow_result: GeneratedPost | None = None


class FileInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    file_name: str | None = None
    file_size: int | None = None
    mime_type: str | None = None
    format: str | None = None
    path: str


class DocumentMetadata(_Metadata):
    shape: ClassVar[str] = "document"

    file_info: FileInfo
    output_format: str | None = None


class ArticleMetadata(_Metadata):
    shape: ClassVar[str] = "article"

    target_module_slug: str | None = None
    content: str | None = None
    output: GeneratedPost | None = None


class ContactInfo(BaseModel):
    name: str | None = None
    email: str | None = None


class PropertyInfo(BaseModel):
    address: str | None = None
    rent: str | None = None
    deposit: str | None = None


class LeaseInfo(BaseModel):
    duration: str | None = None
    start_date: str | None = None


class LeaseMetadata(_Metadata):
    shape: ClassVar[str] = "lease"

    lease_type: str
    output_format: str | None = None
    property_info: PropertyInfo | None = None
    owner_info: ContactInfo | None = None
    tenant_info: ContactInfo | None = None
    lease_info: LeaseInfo | None = None


class OpaqueMetadata(_Metadata):
    pass


ContentMetadata = SocialPostMetadata | DocumentMetadata | ArticleMetadata | LeaseMetadata | OpaqueMetadata


def _decode(raw: Mapping[str, Any] | str | None) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Undecodable metadata string, treating as empty")
            return {}
    if not isinstance(raw, Mapping):
        return {}
    return snake_case_keys(dict(raw))


def _candidates(content_type: ContentType | str | None, data: dict[str, Any]) -> list[type[_Metadata]]:
    if content_type == ContentType.SOCIAL_POST:
        return [SocialPostMetadata]
    if "lease_type" in data:
        return [LeaseMetadata]
    if "file_info" in data:
        return [DocumentMetadata]
    if content_type == ContentType.ARTICLE or "target_module_slug" in data:
        return [ArticleMetadata]
    return []


def parse_metadata(content_type: ContentType | str | None, raw: Mapping[str, Any] | str | None) -> ContentMetadata:
    """Pick the known shape for ``raw``; anything that does not fit is opaque.

    camelCase keys are renamed to snake_case first. A JSON string is decoded;
    an undecodable one yields an empty opaque bag.
    """
    data = _decode(raw)
    for model in _candidates(content_type, data):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.debug("Metadata does not fit %s: %s", model.shape, exc.error_count())
    try:
        return OpaqueMetadata.model_validate(data)
    except ValidationError:
        logger.warning("Metadata with malformed shared keys kept unvalidated")
        return OpaqueMetadata.model_construct(**data)


# ── Post preview ──

class PostPreview(BaseModel):
    post_content: str = ""
    hashtags: list[str] = Field(default_factory=list)
    call_to_action: str = ""
    emojis: str = ""
    platform: str = DEFAULT_PLATFORM
    found_source: str | None = None
    has_error: bool = False


def _split_hashtags(value: list[str] | str | None) -> list[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [tag for tag in value.split() if tag.startswith("#")]


def _join_emojis(value: list[str] | str | None) -> str:
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _text_sources(item: Mapping[str, Any], meta: _Metadata) -> list[tuple[str, Any]]:
    extra = meta.model_extra or {}
    generated = getattr(meta, "generated_content", None)
    output = getattr(meta, "output", None)
    result = getattr(meta, "result", None)
    workflow = getattr(meta, "workflow_result", None)
    return [
        ("metadata.post_content", getattr(meta, "post_content", None) or extra.get("post_content")),
        ("metadata.content", getattr(meta, "content", None) or extra.get("content")),
        ("metadata.caption", getattr(meta, "caption", None) or extra.get("caption")),
        ("metadata.generated_content.post", generated.post if generated else None),
        ("metadata.generated_content.caption", generated.caption if generated else None),
        ("metadata.generated_content.content", generated.content if generated else None),
        ("content.content", item.get("content")),
        ("metadata.output.post", output.post if output else None),
        ("metadata.result.post", result.post if result else None),
        ("metadata.result.content", result.content if result else None),
        ("metadata.workflow_result.post", workflow.post if workflow else None),
    ]


def preview_post(item: Mapping[str, Any]) -> PostPreview:
    """Displayable post text for a content item, from the first non-empty source."""
    meta = parse_metadata(item.get("type"), item.get("metadata"))
    preview = PostPreview()

    for source, value in _text_sources(item, meta):
        if not isinstance(value, str) or not value.strip():
            continue
        text = value.strip()
        if text.startswith("{") and text.endswith("}"):
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            if not isinstance(parsed, dict):
                parsed = {}
            body = parsed.get("post") or parsed.get("caption") or parsed.get("content")
            if body:
                preview.post_content = body
                preview.found_source = f"{source} (parsed JSON)"
                preview.hashtags = _split_hashtags(parsed.get("hashtags"))
                preview.call_to_action = parsed.get("call_to_action") or parsed.get("cta") or ""
                preview.emojis = _join_emojis(parsed.get("emojis"))
                break
        if "<" in text and ">" in text:
            stripped = strip_html(text)
            if stripped:
                preview.post_content = stripped
                preview.found_source = f"{source} (extracted from HTML)"
                break
        preview.post_content = text
        preview.found_source = source
        break

    generated = getattr(meta, "generated_content", None)
    extra = meta.model_extra or {}
    if not preview.hashtags:
        for tags in (getattr(meta, "hashtags", None), generated and generated.hashtags, extra.get("tags")):
            preview.hashtags = _split_hashtags(tags)
            if preview.hashtags:
                break
    if not preview.call_to_action:
        preview.call_to_action = (
            getattr(meta, "call_to_action", None)
            or getattr(meta, "cta", None)
            or (generated and generated.call_to_action)
            or ""
        )
    if not preview.emojis:
        preview.emojis = _join_emojis(getattr(meta, "emojis", None) or (generated and generated.emojis))

    networks = getattr(meta, "networks", None) or getattr(meta, "selected_networks", None) or []
    preview.platform = (
        getattr(meta, "platform", None)
        or getattr(meta, "target_platform", None)
        or (networks[0] if networks else None)
        or DEFAULT_PLATFORM
    )
    preview.has_error = (
        not preview.post_content
        or "error" in preview.post_content.lower()
        or bool(extra.get("error_details"))
    )
    return preview


# ── Module slug resolution ──

_PLATFORM_MODULES = {
    "facebook": "facebook",
    "instagram": "instagram-post",
    "linkedin": "linkedin-article",
    "twitter": "x-twitter",
    "x": "x-twitter",
}

_TYPE_MODULES = {
    "article": "article-writer",
    "document": "document-generator",
    "video": "youtube-uploader",
    "audio": "transcription",
}


def _module_from_title(title: str) -> str | None:
    title = title.lower()
    if "facebook" in title:
        return "facebook"
    if "instagram" in title:
        return "instagram-post"
    if "linkedin" in title:
        return "linkedin-article"
    if "twitter" in title or "x " in title:
        return "x-twitter"
    return None


def resolve_module_slug(item: Mapping[str, Any]) -> str:
    """Best guess at the module that produced ``item``."""
    content_type = item.get("type")
    meta = parse_metadata(content_type, item.get("metadata"))

    target = getattr(meta, "target_module_slug", None) or (meta.model_extra or {}).get("target_module_slug")
    if target:
        return str(target)
    if item.get("module_slug"):
        return item["module_slug"]

    from_title = _module_from_title(item.get("title") or "")
    if from_title:
        return from_title

    if isinstance(meta, SocialPostMetadata):
        networks = meta.networks or meta.selected_networks or []
        for network in ("facebook", "instagram", "linkedin", "twitter", "x"):
            if network in networks:
                return _PLATFORM_MODULES[network]
        if meta.target_platform and meta.target_platform.lower() in _PLATFORM_MODULES:
            return _PLATFORM_MODULES[meta.target_platform.lower()]
        return DEFAULT_MODULE_SLUG

    if isinstance(content_type, ContentType):
        content_type = content_type.value
    return _TYPE_MODULES.get(content_type or "", DEFAULT_MODULE_SLUG)
