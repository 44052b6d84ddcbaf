"""End-to-end flow: author a form, persist it, render it, fill it, submit it."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from form_engine.authoring.builder import FormAuthoringEngine
from form_engine.authoring.persistence import FormPersistence
from form_engine.runtime.computed import ComputedFieldSpec
from form_engine.runtime.file_or_url import FileReference
from form_engine.runtime.renderer import FormRenderer
from form_engine.schemas.form_schema import FormDefinition

FLAG_TEMPLATE = "https://flagcdn.com/w80/{code}.png"


@pytest.fixture
def stored_forms():
    """In-memory forms API keeping the last saved payload per id."""
    store = {}
    api = MagicMock()

    def create_form(payload):
        store["form-1"] = dict(payload, id="form-1", slug="country-flags")
        return {"id": "form-1", "slug": "country-flags"}

    api.create_form.side_effect = create_form
    api.get_form.side_effect = lambda form_id: store[form_id]
    return api


def _author_flag_form(notifier, id_factory):
    engine = FormAuthoringEngine(notifier=notifier, id_factory=id_factory)
    engine.update_form(title="Country Flags")
    name_id = engine.add_field("text", label="Name", name="name")
    code_id = engine.add_field("text", label="Code", name="code")
    flag_id = engine.add_field("file-or-url", label="Flag", name="flag", preview=True)
    return engine, (name_id, code_id, flag_id)


class TestFlagScenario:
    """name/code/flag form with a flag URL computed from code."""

    def _renderer(self, definition, settings, notifier, **kwargs):
        return FormRenderer.from_definition(
            definition,
            computed={"flag": ComputedFieldSpec.from_template(FLAG_TEMPLATE)},
            settings=settings,
            notifier=notifier,
            **kwargs,
        )

    def test_typing_code_computes_flag_and_clearing_reverts(self, settings, notifier, id_factory):
        engine, _ = _author_flag_form(notifier, id_factory)
        definition = FormDefinition.from_wire(engine.definition.to_wire())
        renderer = self._renderer(definition, settings, notifier)

        renderer.set_value("code", "fr")
        flag = {r.name: r for r in renderer.render()}["flag"]
        assert flag.value == "https://flagcdn.com/w80/fr.png"
        assert flag.disabled is True
        assert flag.badge == "Auto-computed"

        renderer.set_value("code", "")
        flag = {r.name: r for r in renderer.render()}["flag"]
        assert flag.disabled is False
        assert flag.value == ""
        assert flag.badge is None

    def test_setting_same_code_twice_is_stable(self, settings, notifier, id_factory):
        engine, _ = _author_flag_form(notifier, id_factory)
        renderer = self._renderer(engine.definition, settings, notifier)

        renderer.set_value("code", "de")
        revision = renderer.revision
        renderer.set_value("code", "de")

        assert renderer.get_value("flag") == "https://flagcdn.com/w80/de.png"
        assert renderer.revision == revision

    def test_reorder_changes_render_order(self, settings, notifier, id_factory):
        engine, (name_id, code_id, flag_id) = _author_flag_form(notifier, id_factory)
        engine.reorder(flag_id, 0)

        renderer = self._renderer(engine.definition, settings, notifier)
        assert [r.name for r in renderer.render()] == ["flag", "name", "code"]

    @pytest.mark.asyncio
    async def test_save_load_render_submit(self, stored_forms, settings, notifier, id_factory):
        engine, _ = _author_flag_form(notifier, id_factory)
        persistence = FormPersistence(stored_forms, notifier=notifier, settings=settings)

        result = persistence.save(engine)
        assert result.form_url == "https://forms.test/forms/country-flags"

        loaded = persistence.load("form-1")
        storage = AsyncMock()
        storage.upload_file.return_value = "https://cdn.test/flags/custom.png"
        renderer = self._renderer(loaded.definition, settings, notifier, file_storage=storage)
        assert renderer.schema_version == "form-1"

        renderer.set_value("name", "  Marie ")
        renderer.switch_input_mode("flag", "file")
        renderer.set_value("flag", FileReference(filename="custom.png", content=b"png"))
        renderer.set_value("code", "fr")
        assert renderer.get_value("flag").filename == "custom.png"

        submitter = AsyncMock()
        payload = await renderer.submit(submitter)

        assert payload == {
            "name": "Marie",
            "code": "fr",
            "flag": "https://cdn.test/flags/custom.png",
        }
        submitter.assert_awaited_once_with(payload)

        renderer.close()
        assert renderer.preview_url("flag") is None
