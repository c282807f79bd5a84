import json
import os
import sys
import tempfile
import unittest
from dataclasses import dataclass
from typing import Dict, List, Optional

from jsoncomparison import NO_DIFF, Compare

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from pytypes import embedding, graph, kinds, pets, shipping
from schemagen.common import sanitize_namespace
from schemagen.config import PackageDescriptor
from schemagen.errors import SchemaDriftError, UnsupportedRootKindError
from schemagen.pytojsons import (PythonToJsonSchemaConverter, convert_python_to_json_schema,
                                 convert_python_to_json_schema_string, generate_schema,
                                 verify_json_schema)
from schemagen.typeinfo import TypeInfo

PYTYPES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "pytypes")


class TestPythonToJsonSchema(unittest.TestCase):

    def test_flat_record(self):
        schema = generate_schema(pets.Pet)
        self.assertEqual(schema, {
            "id": "http://fabric8.io/fabric8/v2/Pet#",
            "$schema": "http://json-schema.org/schema#",
            "type": "object",
            "properties": {
                "Name": {"type": "string"},
                "Age": {"type": "integer"}
            },
            "additionalProperties": True
        })
        self.assertNotIn("definitions", schema)

    def test_nested_record_reference(self):
        schema = generate_schema(pets.Owner)
        self.assertEqual(schema["properties"]["Pet"], {
            "$ref": "#/definitions/pytypes_pets_Pet",
            "javaType": "Pet"
        })
        pet = generate_schema(pets.Pet)
        definition = schema["definitions"]["pytypes_pets_Pet"]
        self.assertEqual(definition["type"], "object")
        self.assertEqual(definition["properties"], pet["properties"])
        self.assertTrue(definition["additionalProperties"])
        self.assertEqual(definition["javaType"], "Pet")

    def test_every_reachable_record_defined_once(self):
        schema = generate_schema(graph.Team)
        self.assertEqual(sorted(schema["definitions"].keys()), [
            "pytypes_graph_Department",
            "pytypes_graph_Employee",
        ])
        self.assertNotIn("pytypes_graph_Team", schema["definitions"])
        self.assertEqual(schema["properties"]["Members"], {
            "type": "array",
            "items": {"$ref": "#/definitions/pytypes_graph_Employee", "javaType": "Employee"}
        })

    def test_self_referential_record(self):
        schema = generate_schema(graph.Node)
        node_ref = {"$ref": "#/definitions/pytypes_graph_Node", "javaType": "Node"}
        self.assertEqual(schema["properties"]["Next"], node_ref)
        self.assertEqual(schema["properties"]["Children"], {"type": "array", "items": node_ref})
        self.assertEqual(list(schema["definitions"].keys()), ["pytypes_graph_Node"])
        definition = schema["definitions"]["pytypes_graph_Node"]
        self.assertEqual(definition["properties"]["Next"], node_ref)
        self.assertEqual(definition["properties"]["Value"], {"type": "integer"})

    def test_mutually_referential_records(self):
        schema = generate_schema(graph.Department)
        definitions = schema["definitions"]
        self.assertEqual(sorted(definitions.keys()), ["pytypes_graph_Department", "pytypes_graph_Employee"])
        self.assertEqual(definitions["pytypes_graph_Employee"]["properties"]["Dept"]["$ref"],
                         "#/definitions/pytypes_graph_Department")
        self.assertEqual(definitions["pytypes_graph_Department"]["properties"]["Head"]["$ref"],
                         "#/definitions/pytypes_graph_Employee")
        self.assertEqual(schema["properties"]["Head"]["$ref"], "#/definitions/pytypes_graph_Employee")

    def test_same_name_in_different_modules(self):
        schema = generate_schema(shipping.Shipment)
        self.assertEqual(schema["properties"]["Origin"]["$ref"], "#/definitions/pytypes_alpha_Address")
        self.assertEqual(schema["properties"]["Destination"]["$ref"], "#/definitions/pytypes_beta_Address")
        self.assertEqual(schema["definitions"]["pytypes_alpha_Address"]["properties"], {"Street": {"type": "string"}})
        self.assertEqual(schema["definitions"]["pytypes_beta_Address"]["properties"],
                         {"Line": {"type": "string"}, "Zip": {"type": "string"}})

    def test_embedded_fields_are_promoted(self):
        schema = generate_schema(embedding.Document)
        self.assertEqual(schema["properties"], {
            "CreatedBy": {"type": "string"},
            "Revision": {"type": "string"},
            "title": {"type": "string"}
        })
        self.assertNotIn("audit", schema["properties"])
        self.assertIn("pytypes_embedding_Audit", schema["definitions"])

    def test_embedded_fields_override_earlier_fields(self):
        schema = generate_schema(embedding.Memo)
        self.assertEqual(schema["properties"], {
            "Revision": {"type": "integer"},
            "CreatedBy": {"type": "string"}
        })

    def test_embedded_record_discovered_earlier(self):
        schema = generate_schema(embedding.Archive)
        self.assertEqual(schema["properties"]["Documents"]["$ref"], "#/definitions/pytypes_embedding_Document")
        self.assertEqual(schema["properties"]["CreatedBy"], {"type": "string"})
        self.assertEqual(schema["properties"]["Revision"], {"type": "integer"})
        self.assertEqual(sorted(schema["definitions"].keys()),
                         ["pytypes_embedding_Audit", "pytypes_embedding_Document"])

    def test_field_kinds(self):
        properties = generate_schema(kinds.Sample)["properties"]
        self.assertEqual(properties["Flag"], {"type": "boolean"})
        self.assertEqual(properties["Count"], {"type": "integer"})
        self.assertEqual(properties["Ratio"], {"type": "number"})
        self.assertEqual(properties["Signal"], {"type": "number"})
        self.assertEqual(properties["Label"], {"type": "string"})
        self.assertEqual(properties["Blob"], {"type": "array", "items": {"type": "integer"}})
        self.assertEqual(properties["Tags"], {"type": "array", "items": {"type": "string"}})
        self.assertEqual(properties["Scores"], {"type": "array", "items": {"type": "integer"}})
        self.assertEqual(properties["Labels"], {
            "type": "object",
            "additionalProperties": {"type": "array", "items": {"type": "integer"}},
            "javaType": "java.util.Map<String,java.util.ArrayList<int>>"
        })
        self.assertEqual(properties["Shade"], {"type": "string"})
        self.assertEqual(properties["renamed"], {"type": "string"})
        self.assertNotIn("Renamed", properties)
        self.assertNotIn("_secret", properties)
        self.assertNotIn("Limit", properties)

    def test_unsupported_field_kinds_pass_through(self):
        properties = generate_schema(kinds.Sample)["properties"]
        for name in ["Point", "Extra", "Either", "Handle"]:
            self.assertEqual(properties[name], {}, name)

    def test_non_dataclass_records(self):
        schema = generate_schema(kinds.Legacy)
        self.assertEqual(schema["properties"], {"Code": {"type": "string"}, "Count": {"type": "integer"}})
        schema = generate_schema(kinds.Coordinates)
        self.assertEqual(schema["properties"], {"Lat": {"type": "number"}, "Lon": {"type": "number"}})

    def test_maps_with_non_string_keys(self):
        properties = generate_schema(kinds.Sample)["properties"]
        self.assertEqual(properties["Lookup"], {
            "type": "object",
            "additionalProperties": {"type": "string"},
            "javaType": "java.util.Map<String,String>"
        })

    def test_plain_subclass_of_dataclass(self):
        schema = generate_schema(kinds.Extended)
        self.assertEqual(schema["properties"], {
            "name": {"type": "string"},
            "Extra": {"type": "integer"}
        })

    def test_locally_defined_self_referential_record(self):
        @dataclass
        class Loc:
            Name: str
            Next: Optional['Loc'] = None

        schema = generate_schema(Loc)
        loc_ref = "#/definitions/" + sanitize_namespace(Loc.__module__) + "_Loc"
        self.assertEqual(schema["properties"]["Next"]["$ref"], loc_ref)
        self.assertEqual(len(schema["definitions"]), 1)

    def test_unresolvable_forward_reference_passes_through(self):
        @dataclass
        class Dangling:
            Name: str
            Peer: Optional['Missing'] = None

        schema = generate_schema(Dangling)
        self.assertEqual(schema["properties"], {
            "Name": {"type": "string"},
            "Peer": {}
        })
        self.assertNotIn("definitions", schema)

    def test_unsupported_root_kind(self):
        for root in [str, int, List[int], Dict[str, pets.Pet], Optional[pets.Pet], kinds.Opaque]:
            with self.assertRaises(UnsupportedRootKindError):
                generate_schema(root)

    def test_package_prefix_and_java_package(self):
        packages = [PackageDescriptor(module="pytypes.pets", java_package="io.example.pets", prefix="pets_")]
        schema = generate_schema(pets.Owner, packages)
        self.assertEqual(schema["properties"]["Backup"], {
            "$ref": "#/definitions/pets_Pet",
            "javaType": "io.example.pets.Pet"
        })
        self.assertEqual(sorted(schema["definitions"].keys()), ["pets_Pet", "pets_Toy"])

    def test_duplicate_package_last_wins(self):
        packages = [
            PackageDescriptor(module="pytypes.pets", java_package="io.first", prefix="first_"),
            PackageDescriptor(module="pytypes.pets", java_package="io.second", prefix="second_"),
        ]
        schema = generate_schema(pets.Owner, packages)
        self.assertEqual(schema["definitions"]["second_Pet"]["javaType"], "io.second.Pet")
        self.assertNotIn("first_Pet", schema["definitions"])

    def test_type_substitution(self):
        schema = generate_schema(pets.Owner, type_map={pets.Toy: pets.Pet})
        self.assertEqual(schema["properties"]["Toys"]["items"]["$ref"], "#/definitions/pytypes_pets_Pet")
        self.assertEqual(list(schema["definitions"].keys()), ["pytypes_pets_Pet"])
        schema = generate_schema(pets.Owner, type_map={pets.Pet: str})
        self.assertEqual(schema["properties"]["Pet"], {"type": "string"})
        self.assertEqual(schema["properties"]["Backup"], {"type": "string"})

    def test_java_type_names(self):
        converter = PythonToJsonSchemaConverter()
        self.assertEqual(converter.java_type(TypeInfo(bool)), "bool")
        self.assertEqual(converter.java_type(TypeInfo(int)), "int")
        self.assertEqual(converter.java_type(TypeInfo(complex)), "double")
        self.assertEqual(converter.java_type(TypeInfo(str)), "String")
        self.assertEqual(converter.java_type(TypeInfo(List[pets.Pet])), "java.util.ArrayList<Pet>")
        self.assertEqual(converter.java_type(TypeInfo(Dict[str, List[float]])), "java.util.Map<String,java.util.ArrayList<double>>")
        self.assertEqual(converter.java_type(TypeInfo(Optional[pets.Pet])), "Pet")
        self.assertEqual(converter.java_type(TypeInfo(object)), "Object")

    def test_each_generation_starts_fresh(self):
        converter = PythonToJsonSchemaConverter()
        converter.convert(graph.Team)
        schema = converter.convert(pets.Pet)
        self.assertNotIn("definitions", schema)


class TestPythonToJsonSchemaFiles(unittest.TestCase):

    def setUp(self):
        self.config_file = os.path.join(PYTYPES_DIR, "pets-config.json")
        self.ref_file = os.path.join(PYTYPES_DIR, "pets-ref.json")

    def test_convert_owner_to_json_schema_file(self):
        json_path = os.path.join(tempfile.gettempdir(), "schemagen", "pets.json")
        os.makedirs(os.path.dirname(json_path), exist_ok=True)
        convert_python_to_json_schema("pytypes.pets:Owner", json_path, self.config_file)

        with open(json_path, "r", encoding="utf-8") as actual_file:
            actual = json.load(actual_file)
        with open(self.ref_file, "r", encoding="utf-8") as ref:
            expected = json.load(ref)
        diff = Compare().check(actual, expected)
        assert diff == NO_DIFF

    def test_convert_string_without_config(self):
        schema = json.loads(convert_python_to_json_schema_string("pytypes.pets:Pet"))
        self.assertEqual(schema["id"], "http://fabric8.io/fabric8/v2/Pet#")

    def test_verify_up_to_date_schema(self):
        verify_json_schema("pytypes.pets:Owner", self.ref_file, self.config_file)

    def test_verify_stale_schema(self):
        with self.assertRaises(SchemaDriftError):
            verify_json_schema("pytypes.pets:Owner", self.ref_file)


if __name__ == '__main__':
    unittest.main()
