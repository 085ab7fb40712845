"""Tests for the control-message codec."""

from __future__ import annotations

import unittest

from lazyexplorer.errors import ControlMessageError
from lazyexplorer.runtime.actions import (
    AddNodeSorter,
    Call,
    ChangeDirectory,
    FocusByIndex,
    FocusNext,
    Quit,
    SelectPath,
)
from lazyexplorer.runtime.control import decode_action, decode_entries, decode_messages, encode_messages


class DecodeTests(unittest.TestCase):
    def test_yaml_list_of_tags_and_mappings(self) -> None:
        actions, errors = decode_messages(
            "- FocusNext\n"
            "- ChangeDirectory: /tmp\n"
            "- AddNodeSorter: {sorter: BySize, reverse: true}\n"
        )
        self.assertEqual(errors, [])
        self.assertEqual(actions, [FocusNext(), ChangeDirectory("/tmp"), AddNodeSorter("BySize", True)])

    def test_json_documents_decode(self) -> None:
        actions, errors = decode_messages('["FocusNext", {"SelectPath": "/a"}, {"FocusByIndex": 3}]')
        self.assertEqual(errors, [])
        self.assertEqual(actions, [FocusNext(), SelectPath("/a"), FocusByIndex(3)])

    def test_single_entry_document(self) -> None:
        actions, errors = decode_messages("Quit")
        self.assertEqual((actions, errors), ([Quit()], []))

    def test_bad_entries_rejected_individually(self) -> None:
        actions, errors = decode_entries(
            [
                "FocusNext",
                "Teleport",
                {"FocusByIndex": "third"},
                {"Call": {"program": "ls", "args": ["-l", "/"]}},
                {"TaskCompleted": {"task_id": 1}},
                {"FocusNext": 1},
            ]
        )
        self.assertEqual(actions, [FocusNext(), Call("ls", ("-l", "/"))])
        self.assertEqual(len(errors), 4)
        self.assertTrue(all(isinstance(error, ControlMessageError) for error in errors))
        self.assertEqual(errors[0].entry, "Teleport")

    def test_field_errors(self) -> None:
        with self.assertRaises(ControlMessageError):
            decode_action({"AddNodeSorter": {"sorter": "BySize", "colour": "red"}})
        with self.assertRaises(ControlMessageError):
            decode_action({"SelectPath": None})
        with self.assertRaises(ControlMessageError):
            decode_action({"AddNodeSorter": {"sorter": "BySize", "reverse": "yes"}})
        with self.assertRaises(ControlMessageError):
            decode_action({"FocusNext": None, "Quit": None})

    def test_scalars_coerce_to_string_fields(self) -> None:
        self.assertEqual(decode_action({"ChangeDirectory": 2024}), ChangeDirectory("2024"))

    def test_malformed_document_is_one_error(self) -> None:
        actions, errors = decode_messages("[FocusNext, {ChangeDirectory: ")
        self.assertEqual(actions, [])
        self.assertEqual(len(errors), 1)

    def test_empty_document(self) -> None:
        self.assertEqual(decode_messages(""), ([], []))


class EncodeTests(unittest.TestCase):
    def test_encoded_messages_decode_back(self) -> None:
        original = [FocusNext(), ChangeDirectory("/srv/a b"), AddNodeSorter("BySize"), Call("echo", ("it's",))]
        actions, errors = decode_messages(encode_messages(original))
        self.assertEqual(errors, [])
        self.assertEqual(actions, original)


if __name__ == "__main__":
    unittest.main()
