import pytest

from conftest import defs_source, document_source, ref_definition, types_source
from ubml_tools.exceptions import MissingMetadataError
from ubml_tools.schema.catalog import IdCatalog, element_type_from_definition
from ubml_tools.schema.id_utils import IdConfig, build_id_pattern, format_id, next_id, parse_id_number
from ubml_tools.schema.registry import DefinitionRegistry


def build_catalog(*sources):
    return IdCatalog.from_registry(DefinitionRegistry.merge(sources), sources)


class TestBundledCatalog:
    def test_prefixes(self, catalog):
        assert sorted(catalog.prefixes) == ["AC", "EN", "KP", "PR", "ST", "TM"]

    def test_prefix_info(self, catalog):
        info = catalog.prefixes["AC"]
        assert info.definition == "ActorRef"
        assert info.element_type == "actor"
        assert info.human_name == "Actor ID"
        assert info.category == "core"
        assert info.category_display_name == "Core"

    @pytest.mark.parametrize(
        "field",
        ["owner", "performer", "next", "responsible", "accountable", "reviewedBy",
         "inputs", "outputs", "seeAlso", "kpis", "sponsor", "reportsTo", "measures", "subprocess"],
    )
    def test_reference_fields(self, catalog, field):
        assert catalog.is_reference_field(field)

    @pytest.mark.parametrize("field", ["name", "steps", "actors", "processes", "description", "loop"])
    def test_non_reference_fields(self, catalog, field):
        assert not catalog.is_reference_field(field)

    def test_id_config(self, catalog):
        assert catalog.id_config == IdConfig(digit_length=5, init_offset=1, add_offset=1000)
        assert catalog.init_start_number() == 1
        assert catalog.add_start_number() == 1000

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("AC00001", True),
            ("PR123456", True),
            ("TM00042", True),
            ("AC0001", False),
            ("XX00001", False),
            ("ac00001", False),
            ("AC00001 ", False),
            ("AC00001\n", False),
            ("AC\u0660\u0660\u0660\u0660\u0661", False),
            ("", False),
            (1, False),
            (None, False),
        ],
    )
    def test_is_valid_id(self, catalog, value, expected):
        assert catalog.is_valid_id(value) is expected

    def test_pattern_hints(self, catalog):
        hints = catalog.pattern_hints()
        assert hints["^AC\\d{5,}$"] == "Actor IDs are AC followed by at least 5 digits, e.g. AC00001"
        assert len(hints) == len(catalog.prefixes)

    def test_lookups(self, catalog):
        assert catalog.get_id_prefix("KP00003") == "KP"
        assert catalog.get_id_prefix("ZZ00003") is None
        assert catalog.element_type_for_id("ST00001") == "step"
        assert catalog.element_type_for_id("nonsense") is None
        assert catalog.prefix_for_element_type("entity") == "EN"
        assert catalog.prefix_for_element_type("unicorn") is None

    def test_next_id(self, catalog):
        assert catalog.next_id("AC", ["AC00001", "AC00002"]) == "AC00003"
        assert catalog.next_id("AC", ["AC01000"], start=catalog.add_start_number()) == "AC01001"

    def test_categories_in_order(self, catalog):
        grouped = catalog.categories()
        assert [category.key for category, _ in grouped] == ["core", "analysis", "reference"]
        core = dict((c.key, [i.prefix for i in infos]) for c, infos in grouped)["core"]
        assert core == ["AC", "EN", "PR", "ST"]

    def test_document_types(self, catalog):
        assert set(catalog.document_types) == {"workspace", "actors", "process", "entities", "metrics", "glossary"}


class TestDetection:
    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("process.ubml.yaml", "process"),
            ("sales.process.ubml.yaml", "process"),
            ("dir/Sales.Actors.UBML.yml", "actors"),
            ("C:\\work\\workspace.ubml.yaml", "workspace"),
            ("subprocess.ubml.yaml", None),
            ("process.yaml", None),
            ("notes.ubml.yaml", None),
        ],
    )
    def test_from_filename(self, catalog, filename, expected):
        assert catalog.detect_type_from_filename(filename) == expected

    def test_from_content(self, catalog):
        assert catalog.detect_type_from_content({"processes": {}}) == "process"
        assert catalog.detect_type_from_content({"organization": {}, "documents": []}) == "workspace"
        assert catalog.detect_type_from_content({"name": "x"}) is None
        assert catalog.detect_type_from_content(["processes"]) is None

    def test_content_tie_goes_to_first_type(self, catalog):
        assert catalog.detect_type_from_content({"actors": {}, "processes": {}}) == "actors"


class TestCatalogConstruction:
    def test_missing_metadata_is_reported_in_one_batch(self):
        broken = ref_definition("AC")
        del broken["x-ubml"]["humanName"]
        del broken["x-ubml"]["errorHint"]
        also_broken = {"type": "string", "pattern": "^PR\\d{5,}$"}
        with pytest.raises(MissingMetadataError) as exc_info:
            build_catalog(defs_source({"ActorRef": broken, "ProcessRef": also_broken}))
        error = exc_info.value
        assert error.missing["ActorRef"] == ["humanName", "errorHint"]
        assert error.missing["ProcessRef"] == ["prefix", "humanName", "shortDescription", "errorHint", "category"]
        assert "ActorRef: missing humanName, errorHint" in str(error)

    def test_ref_without_pattern_is_not_a_reference_type(self):
        catalog = build_catalog(defs_source({"LooseRef": {"type": "string"}, "ActorRef": ref_definition("AC")}))
        assert list(catalog.prefixes) == ["AC"]

    def test_reference_field_forms(self):
        target = "../defs/refs.defs.yaml#/$defs/ActorRef"
        types = types_source(
            "thing",
            {
                "Thing": {
                    "type": "object",
                    "properties": {
                        "direct": {"$ref": target},
                        "listed": {"type": "array", "items": {"$ref": target}},
                        "either": {"oneOf": [{"type": "null"}, {"$ref": target}]},
                        "listed_either": {"type": "array", "items": {"anyOf": [{"$ref": target}]}},
                        "nested": {
                            "type": "object",
                            "properties": {"deep": {"$ref": target}},
                        },
                        "plain": {"type": "string"},
                        "other": {"$ref": "#/$defs/Other"},
                    },
                },
                "Other": {"type": "string"},
            },
        )
        catalog = build_catalog(defs_source({"ActorRef": ref_definition("AC")}), types)
        assert catalog.reference_fields == {"direct", "listed", "either", "listed_either", "deep"}

    def test_extension_subtrees_are_not_scanned(self):
        doc = document_source(
            "thing",
            {
                "type": "object",
                "x-ubml-cli": {"properties": {"hidden": {"$ref": "#/$defs/ActorRef"}}},
                "properties": {"visible": {"$ref": "#/$defs/ActorRef"}},
            },
        )
        catalog = build_catalog(defs_source({"ActorRef": ref_definition("AC")}), doc)
        assert catalog.reference_fields == {"visible"}

    def test_partial_id_config_keeps_defaults(self):
        catalog = build_catalog(
            defs_source({"ActorRef": ref_definition("AC")}, **{"x-ubml-id-config": {"digitLength": 3}})
        )
        assert catalog.id_config == IdConfig(digit_length=3, init_offset=1, add_offset=1000)
        assert catalog.is_valid_id("AC001")
        assert catalog.format_id("AC", 7) == "AC007"

    def test_no_prefixes_matches_nothing(self):
        catalog = build_catalog(defs_source({}))
        assert not catalog.is_valid_id("AC00001")
        assert not catalog.is_valid_id("")

    def test_unknown_category_sorted_last(self):
        catalog = build_catalog(
            defs_source(
                {"ActorRef": ref_definition("AC", "extra"), "ProcessRef": ref_definition("PR")},
                **{"x-ubml-categories": [{"key": "core", "displayName": "Core", "order": 1}]},
            )
        )
        keys = [(category.key, category.display_name) for category, _ in catalog.categories()]
        assert keys == [("core", "Core"), ("extra", "extra")]

    def test_element_type_from_definition(self):
        assert element_type_from_definition("ActorRef") == "actor"
        assert element_type_from_definition("KpiRef") == "kpi"
        assert element_type_from_definition("Thing") == "thing"


class TestIdUtils:
    def test_format_id(self):
        assert format_id("AC", 1) == "AC00001"
        assert format_id("AC", 123456) == "AC123456"

    def test_parse_id_number(self):
        assert parse_id_number("PR01000") == 1000
        assert parse_id_number("PR") is None

    def test_next_id_skips_taken(self):
        assert next_id("ST", {"ST00005", "ST00006"}, start=5) == "ST00007"

    def test_build_id_pattern(self):
        pattern = build_id_pattern(["AC", "PR"], 5)
        assert pattern.fullmatch("PR00001")
        assert not pattern.fullmatch("PR0001")
        assert not pattern.fullmatch("PR00001\n")
        assert not pattern.fullmatch("PR\u0660\u0660\u0660\u0660\u0661")

    def test_parse_id_number_ascii_only(self):
        assert parse_id_number("AC00001\n") is None
        assert parse_id_number("AC\u0660\u0660\u0660\u0660\u0661") is None
