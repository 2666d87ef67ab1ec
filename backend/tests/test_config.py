"""Tests for metadata loading and drafting configuration."""

from pathlib import Path

import pytest

from draftforge.config import DraftConfig, DraftSettings
from draftforge.core.errors import NotDraftableError
from draftforge.core.types import ALL_OPERATIONS, Operation
from draftforge.hooks import HookRegistry
from draftforge.metadata.loader import EntityModel, MetadataLoader

METADATA_PATH = Path(__file__).resolve().parents[2] / "metadata"


def write_entity(root: Path, filename: str, content: str) -> None:
    entities = root / "entities"
    entities.mkdir(parents=True, exist_ok=True)
    (entities / filename).write_text(content)


# =============================================================================
# MetadataLoader tests
# =============================================================================


class TestMetadataLoader:
    def test_loads_project_entities(self, metadata_loader):
        assert metadata_loader.list_entities() == ["Talkative", "Vanilla"]

        talkative = metadata_loader.get_entity("Talkative")
        assert talkative.abbreviation == "TLK"
        assert talkative.primary_key == "id"
        assert talkative.drafts.enabled
        assert talkative.drafts.operations == ALL_OPERATIONS
        assert talkative.get_field("before_comment").default == ""

    def test_entity_without_drafts_section(self, metadata_loader):
        assert metadata_loader.get_entity("Vanilla").drafts.enabled is False

    def test_missing_entities_directory(self, tmp_path):
        loader = MetadataLoader(tmp_path)
        loader.load_all()
        assert loader.list_entities() == []

    def test_drafts_operations_subset(self, tmp_path):
        write_entity(tmp_path, "memo.yaml", """
entity: Memo
abbreviation: memo
drafts:
  operations: [create, update]
fields:
  - name: title
    type: string
""")
        loader = MetadataLoader(tmp_path)
        loader.load_all()
        memo = loader.get_entity("Memo")

        assert memo.abbreviation == "MEMO"
        assert memo.drafts.enabled
        assert memo.drafts.operations == frozenset({Operation.CREATE, Operation.UPDATE})

    def test_drafts_disabled_explicitly(self, tmp_path):
        write_entity(tmp_path, "memo.yaml", """
entity: Memo
drafts:
  enabled: false
fields:
  - name: title
""")
        loader = MetadataLoader(tmp_path)
        loader.load_all()
        assert loader.get_entity("Memo").drafts.enabled is False

    def test_primary_key_added_when_missing(self):
        model = EntityModel.from_dict({"entity": "Memo", "fields": [{"name": "title"}]})
        assert model.primary_key == "id"
        assert model.field_names == ["id", "title"]
        assert model.get_field("title").type == "string"

    def test_abbreviation_generated_from_name(self):
        assert EntityModel.from_dict({"entity": "Memo"}).abbreviation == "MEM"

    def test_table_name_is_snake_case(self):
        assert EntityModel.from_dict({"entity": "PurchaseOrder"}).table_name == "purchase_order"

    def test_unknown_field_type_rejected(self):
        with pytest.raises(ValueError, match="Unknown field type"):
            EntityModel.from_dict({
                "entity": "Memo",
                "fields": [{"name": "x", "type": "blob"}],
            })

    def test_duplicate_abbreviation_rejected(self, tmp_path):
        write_entity(tmp_path, "a.yaml", "entity: Alpha\nabbreviation: AB\n")
        write_entity(tmp_path, "b.yaml", "entity: Beta\nabbreviation: AB\n")
        loader = MetadataLoader(tmp_path)
        with pytest.raises(ValueError, match="Duplicate abbreviation 'AB'"):
            loader.load_all()

    def test_abbreviation_length_validated(self, tmp_path):
        write_entity(tmp_path, "a.yaml", "entity: Alpha\nabbreviation: TOOLONG\n")
        loader = MetadataLoader(tmp_path)
        with pytest.raises(ValueError, match="2-5 characters"):
            loader.load_all()

    def test_abbreviation_must_be_alphanumeric(self, tmp_path):
        write_entity(tmp_path, "a.yaml", "entity: Alpha\nabbreviation: A-B\n")
        loader = MetadataLoader(tmp_path)
        with pytest.raises(ValueError, match="alphanumeric"):
            loader.load_all()


# =============================================================================
# DraftSettings tests
# =============================================================================


class TestDraftSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DRAFTFORGE_LIST_BATCH_SIZE", raising=False)
        monkeypatch.delenv("DRAFTFORGE_METADATA_PATH", raising=False)
        settings = DraftSettings.from_env()
        assert settings.list_batch_size == 100
        assert settings.metadata_path is None

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DRAFTFORGE_LIST_BATCH_SIZE", "25")
        monkeypatch.setenv("DRAFTFORGE_METADATA_PATH", str(tmp_path))
        settings = DraftSettings.from_env()
        assert settings.list_batch_size == 25
        assert settings.metadata_path == tmp_path

    def test_invalid_batch_size(self, monkeypatch):
        monkeypatch.setenv("DRAFTFORGE_LIST_BATCH_SIZE", "0")
        with pytest.raises(ValueError):
            DraftSettings.from_env()


# =============================================================================
# DraftConfig tests
# =============================================================================


class TestDraftConfig:
    def test_register_and_get(self, talkative_model):
        config = DraftConfig()
        hooks = HookRegistry()
        registration = config.register(talkative_model, hooks)

        assert config.get("Talkative") is registration
        assert registration.hooks is hooks
        assert registration.draftable
        assert config.is_registered("Talkative")
        assert config.list_registered() == ["Talkative"]
        assert config.models() == [talkative_model]

    def test_register_twice_rejected(self, talkative_model):
        config = DraftConfig()
        config.register(talkative_model)
        with pytest.raises(ValueError, match="already registered"):
            config.register(talkative_model)

    def test_get_unregistered(self):
        with pytest.raises(NotDraftableError):
            DraftConfig().get("Talkative")

    def test_partial_operations_not_draftable(self, talkative_model):
        config = DraftConfig()
        config.register(talkative_model, operations=[Operation.UPDATE])
        assert config.is_registered("Talkative")
        assert not config.is_draftable("Talkative")

    def test_configs_are_independent(self, talkative_model):
        first = DraftConfig()
        first.register(talkative_model)
        assert not DraftConfig().is_registered("Talkative")

    def test_from_metadata_registers_drafted_entities(self, metadata_loader):
        config = DraftConfig.from_metadata(metadata_loader)
        assert config.list_registered() == ["Talkative"]
        assert config.is_draftable("Talkative")
        assert not config.is_draftable("Vanilla")

    def test_from_metadata_attaches_hooks(self, metadata_loader):
        hooks = HookRegistry()
        config = DraftConfig.from_metadata(metadata_loader, {"Talkative": hooks})
        assert config.get("Talkative").hooks is hooks

    def test_from_metadata_rejects_hooks_for_unknown_entity(self, metadata_loader):
        with pytest.raises(ValueError, match="unknown entities"):
            DraftConfig.from_metadata(metadata_loader, {"Ghost": HookRegistry()})

    def test_from_metadata_uses_settings(self, metadata_loader):
        settings = DraftSettings(list_batch_size=7)
        config = DraftConfig.from_metadata(metadata_loader, settings=settings)
        assert config.settings.list_batch_size == 7

    def test_from_env_loads_metadata_path(self, monkeypatch):
        monkeypatch.setenv("DRAFTFORGE_METADATA_PATH", str(METADATA_PATH))
        monkeypatch.delenv("DRAFTFORGE_LIST_BATCH_SIZE", raising=False)
        config = DraftConfig.from_env()
        assert config.list_registered() == ["Talkative"]
        assert config.settings.metadata_path == METADATA_PATH

    def test_from_env_without_metadata_path(self, monkeypatch):
        monkeypatch.delenv("DRAFTFORGE_METADATA_PATH", raising=False)
        monkeypatch.delenv("DRAFTFORGE_LIST_BATCH_SIZE", raising=False)
        assert DraftConfig.from_env().list_registered() == []
