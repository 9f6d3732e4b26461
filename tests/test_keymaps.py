"""Unit tests for the key catalog."""

import unittest

from tokencalc_pkg import keymaps


class TestPredicates(unittest.TestCase):
    def test_operator_classes(self):
        self.assertTrue(keymaps.is_binary(keymaps.OP_POW))
        self.assertFalse(keymaps.is_binary(keymaps.OP_SQRT))
        self.assertTrue(keymaps.is_prefix(keymaps.OP_SUB))
        self.assertTrue(keymaps.is_prefix(keymaps.OP_SQRT))
        for key_id in (keymaps.OP_FACT, keymaps.OP_PCT, keymaps.OP_SQR):
            self.assertTrue(keymaps.is_suffix(key_id))
        self.assertFalse(keymaps.is_suffix(keymaps.RPAREN))

    def test_functions(self):
        self.assertTrue(keymaps.is_func(keymaps.FUN_LOG))
        self.assertFalse(keymaps.is_trig_func(keymaps.FUN_LOG))
        self.assertTrue(keymaps.is_trig_func(keymaps.FUN_ARCTAN))
        self.assertFalse(keymaps.is_func(keymaps.LPAREN))

    def test_operator_ids(self):
        self.assertTrue(keymaps.is_operator_id(keymaps.CONST_E))
        self.assertFalse(keymaps.is_operator_id(keymaps.DIGIT_3))
        self.assertFalse(keymaps.is_operator_id(keymaps.DEC_POINT))
        self.assertFalse(keymaps.is_operator_id(999))


class TestDigits(unittest.TestCase):
    def test_dig_val(self):
        self.assertEqual(keymaps.dig_val(keymaps.DIGIT_7), 7)
        self.assertIsNone(keymaps.dig_val(keymaps.DEC_POINT))
        self.assertIsNone(keymaps.dig_val(keymaps.OP_ADD))

    def test_key_for_dig_val(self):
        self.assertEqual(keymaps.key_for_dig_val(0), keymaps.DIGIT_0)
        with self.assertRaises(ValueError):
            keymaps.key_for_dig_val(10)


class TestStrings(unittest.TestCase):
    def test_to_string(self):
        self.assertEqual(keymaps.to_string(keymaps.DIGIT_4), "4")
        self.assertEqual(keymaps.to_string(keymaps.DEC_POINT), ".")
        self.assertEqual(keymaps.to_string(keymaps.FUN_LN), "ln(")
        self.assertEqual(keymaps.to_string(keymaps.FUN_ARCSIN), "sin⁻¹(")
        with self.assertRaises(ValueError):
            keymaps.to_string(999)

    def test_descriptive_strings(self):
        self.assertEqual(keymaps.to_descriptive_string(keymaps.OP_SQR), "squared")
        self.assertIsNone(keymaps.to_descriptive_string(keymaps.OP_ADD))

    def test_key_for_char(self):
        self.assertEqual(keymaps.key_for_char("9"), keymaps.DIGIT_9)
        self.assertEqual(keymaps.key_for_char(keymaps.MINUS_SIGN), keymaps.OP_SUB)
        self.assertEqual(keymaps.key_for_char("*"), keymaps.OP_MUL)
        self.assertIsNone(keymaps.key_for_char("٣"))
        self.assertIsNone(keymaps.key_for_char("#"))

    def test_key_for_function(self):
        self.assertEqual(keymaps.key_for_function("acos"), keymaps.FUN_ARCCOS)
        self.assertIsNone(keymaps.key_for_function("cosh"))
