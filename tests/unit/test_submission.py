"""Unit tests for submission transforms, validation and uploads."""

from unittest.mock import AsyncMock

import pytest

from form_engine.errors import FetchError, ValidationError
from form_engine.registry.field_types import FieldKind
from form_engine.runtime.fields import RuntimeField
from form_engine.runtime.file_or_url import FileReference
from form_engine.runtime.submission import apply_transforms, upload_files, validate_values
from form_engine.schemas.form_schema import FieldValidation, Option


def _field(name, kind=FieldKind.TEXT, **kwargs):
    return RuntimeField(name=name, kind=kind, label=kwargs.pop("label", name.title()), **kwargs)


class TestApplyTransforms:
    """Test default and custom value transforms."""

    def test_text_trimmed(self):
        payload = apply_transforms([_field("name")], {"name": "  Ada  "})
        assert payload == {"name": "Ada"}

    def test_numbers_coerced(self):
        fields = [_field("age", FieldKind.NUMBER), _field("score", FieldKind.RANGE), _field("fee", FieldKind.NUMBER)]
        payload = apply_transforms(fields, {"age": "21", "score": "7.5", "fee": ""})
        assert payload == {"age": 21, "score": 7.5, "fee": None}

    def test_unparsable_number_left_for_validation(self):
        payload = apply_transforms([_field("age", FieldKind.NUMBER)], {"age": "twenty"})
        assert payload["age"] == "twenty"

    def test_multi_values_become_lists(self):
        fields = [_field("langs", FieldKind.MULTI_CHOICE), _field("days", FieldKind.MULTISELECT)]
        payload = apply_transforms(fields, {"langs": "ielts", "days": ["mon", "", "tue"]})
        assert payload == {"langs": ["ielts"], "days": ["mon", "tue"]}

    def test_custom_transform_sees_transformed_values(self):
        fields = [
            _field("first"),
            _field("slug", transform=lambda value, values: f"{values['first'].lower()}-{value}"),
        ]
        payload = apply_transforms(fields, {"first": " Ada ", "slug": "1"})
        assert payload["slug"] == "ada-1"

    def test_only_schema_fields_included(self):
        payload = apply_transforms([_field("name")], {"name": "x", "stray": "y"})
        assert payload == {"name": "x"}

    def test_failing_transform_reported_on_its_field(self):
        def explode(value, values):
            raise ValueError("bad date")

        fields = [_field("name"), _field("start", label="Start date", transform=explode)]

        with pytest.raises(ValidationError) as exc_info:
            apply_transforms(fields, {"name": "Ada", "start": "tomorrow"})

        assert exc_info.value.field_errors == {"start": "Could not process Start date"}


class TestValidateValues:
    """Test per-field validation."""

    def test_required_empty(self):
        errors = validate_values([_field("name", required=True, label="Full Name")], {"name": ""})
        assert errors == {"name": "Full Name is required"}

    def test_required_list_empty(self):
        fields = [_field("langs", FieldKind.MULTI_CHOICE, required=True, options=[Option(id="a", value="a")])]
        assert "langs" in validate_values(fields, {"langs": []})

    def test_optional_empty_passes(self):
        assert validate_values([_field("nick", validation=FieldValidation(minLength=3))], {"nick": ""}) == {}

    def test_all_failures_reported(self):
        fields = [
            _field("email", FieldKind.EMAIL, required=True),
            _field("phone", FieldKind.TEL, required=True),
            _field("meta", FieldKind.JSON),
        ]
        errors = validate_values(fields, {"email": "not-an-email", "phone": "", "meta": "{oops"})
        assert errors == {
            "email": "Please enter a valid email address",
            "phone": "Phone is required",
            "meta": "Invalid JSON format",
        }

    def test_valid_email_and_json(self):
        fields = [_field("email", FieldKind.EMAIL), _field("meta", FieldKind.JSON)]
        assert validate_values(fields, {"email": "ada@example.com", "meta": '{"a": 1}'}) == {}

    def test_number_rules(self):
        field = _field("age", FieldKind.NUMBER, validation=FieldValidation(min=16, max=60))
        assert validate_values([field], {"age": "old"}) == {"age": "Must be a number"}
        assert validate_values([field], {"age": 12}) == {"age": "Must be at least 16"}
        assert validate_values([field], {"age": 61}) == {"age": "Must be at most 60"}
        assert validate_values([field], {"age": 30}) == {}

    def test_length_and_pattern(self):
        field = _field(
            "code", validation=FieldValidation(minLength=2, maxLength=2, pattern="[a-z]+")
        )
        assert validate_values([field], {"code": "f"}) == {"code": "Must be at least 2 characters"}
        assert validate_values([field], {"code": "fra"}) == {"code": "Must be at most 2 characters"}
        assert validate_values([field], {"code": "F1"}) == {"code": "Does not match the required format"}
        assert validate_values([field], {"code": "fr"}) == {}

    def test_choice_must_be_an_option(self):
        field = _field("level", FieldKind.RADIO, options=[Option(id="a", value="a"), Option(id="b", value="b")])
        assert validate_values([field], {"level": "c"}) == {"level": "Invalid choice: c"}
        assert validate_values([field], {"level": "b"}) == {}

    def test_file_size_limit(self):
        field = _field("cv", FieldKind.FILE, max_size_mb=0.001)
        big = FileReference(filename="cv.pdf", content=b"x" * 2048)
        assert validate_values([field], {"cv": big}) == {"cv": "File is larger than 0.001MB"}

    def test_default_size_limit_applies_without_field_limit(self):
        field = _field("cv", FieldKind.FILE, required=True)
        big = FileReference(filename="cv.pdf", content=b"x" * (11 * 1024 * 1024))

        assert validate_values([field], {"cv": big}) == {"cv": "File is larger than 10MB"}
        assert validate_values([field], {"cv": big}, max_upload_mb=20) == {}

    def test_every_file_in_a_list_checked(self):
        field = _field("docs", FieldKind.FILE, allow_multiple=True, max_size_mb=0.001)
        small = FileReference(filename="a.pdf", content=b"x")
        big = FileReference(filename="b.pdf", content=b"x" * 2048)

        assert validate_values([field], {"docs": [small, big]}) == {"docs": "File is larger than 0.001MB"}
        assert validate_values([field], {"docs": [small, "https://cdn.test/c.pdf"]}) == {}


class TestUploadFiles:
    """Test file uploads before submission."""

    @pytest.mark.asyncio
    async def test_file_replaced_with_url(self):
        storage = AsyncMock()
        storage.upload_file.return_value = "https://cdn.test/flag.png"
        photo = FileReference(filename="flag.png", content=b"png")

        payload = await upload_files({"flag": photo, "name": "Ada"}, storage, "test/forms")

        assert payload == {"flag": "https://cdn.test/flag.png", "name": "Ada"}
        storage.upload_file.assert_awaited_once_with(photo, "test/forms")

    @pytest.mark.asyncio
    async def test_file_lists_uploaded_in_order(self):
        storage = AsyncMock()
        storage.upload_file.side_effect = ["https://cdn.test/1.pdf", "https://cdn.test/2.pdf"]
        files = [FileReference(filename="1.pdf"), FileReference(filename="2.pdf")]

        payload = await upload_files({"docs": files}, storage, "f")

        assert payload["docs"] == ["https://cdn.test/1.pdf", "https://cdn.test/2.pdf"]

    @pytest.mark.asyncio
    async def test_mixed_list_uploads_only_files(self):
        storage = AsyncMock()
        storage.upload_file.return_value = "https://cdn.test/new.pdf"
        new_file = FileReference(filename="new.pdf", content=b"pdf")

        payload = await upload_files({"docs": ["https://cdn.test/old.pdf", new_file]}, storage, "f")

        assert payload["docs"] == ["https://cdn.test/old.pdf", "https://cdn.test/new.pdf"]
        storage.upload_file.assert_awaited_once_with(new_file, "f")

    @pytest.mark.asyncio
    async def test_without_files_storage_is_not_needed(self):
        payload = await upload_files({"name": "Ada", "tags": ["a"]}, None, "f")
        assert payload == {"name": "Ada", "tags": ["a"]}

    @pytest.mark.asyncio
    async def test_missing_storage(self):
        with pytest.raises(FetchError) as exc_info:
            await upload_files({"cv": FileReference(filename="cv.pdf")}, None, "f")
        assert exc_info.value.field_name == "cv"

    @pytest.mark.asyncio
    async def test_upload_failure(self):
        storage = AsyncMock()
        storage.upload_file.side_effect = FetchError("POST /api/upload/file failed: 500")

        with pytest.raises(FetchError, match="Failed to upload cv") as exc_info:
            await upload_files({"cv": FileReference(filename="cv.pdf")}, storage, "f")
        assert exc_info.value.field_name == "cv"
