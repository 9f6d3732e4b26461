"""Unit tests for result formatting."""

import unittest
from fractions import Fraction

import sympy as sp

from tokencalc_pkg.formatting import add_commas, exact_decimal, format_number, short_string
from tokencalc_pkg.keymaps import ELLIPSIS
from tokencalc_pkg.numeric import Real


class TestAddCommas(unittest.TestCase):
    def test_grouping(self):
        self.assertEqual(add_commas("1234567"), "1,234,567")
        self.assertEqual(add_commas("123456"), "123,456")
        self.assertEqual(add_commas("1234"), "1,234")

    def test_short_runs_unchanged(self):
        self.assertEqual(add_commas("123"), "123")
        self.assertEqual(add_commas("7"), "7")
        self.assertEqual(add_commas(""), "")


class TestExactDecimal(unittest.TestCase):
    def test_terminating(self):
        self.assertEqual(exact_decimal(Fraction(3, 4), 8), "0.75")
        self.assertEqual(exact_decimal(Fraction(-5, 2), 8), "-2.5")
        self.assertEqual(exact_decimal(Fraction(42), 8), "42")

    def test_non_terminating(self):
        self.assertIsNone(exact_decimal(Fraction(1, 3), 8))

    def test_too_many_digits(self):
        self.assertIsNone(exact_decimal(Fraction(123456789), 8))
        self.assertIsNone(exact_decimal(Fraction(1, 1024), 8))


class TestShortString(unittest.TestCase):
    def test_exact_values(self):
        self.assertEqual(short_string(Real(220)), "220")
        self.assertEqual(short_string(Real(Fraction(1, 8))), "0.125")
        self.assertEqual(short_string(Real(-7)), "-7")

    def test_repeating_decimal_is_truncated(self):
        text = short_string(Real(Fraction(1, 3)))
        self.assertTrue(text.startswith("0.333"))
        self.assertTrue(text.endswith(ELLIPSIS))

    def test_irrational_is_truncated(self):
        text = short_string(Real(sp.pi))
        self.assertTrue(text.startswith("3.14159"))
        self.assertTrue(text.endswith(ELLIPSIS))

    def test_large_integer_is_truncated(self):
        self.assertTrue(short_string(Real(123456789)).endswith(ELLIPSIS))
        self.assertEqual(short_string(Real(123456789), max_digits=9), "123456789")


class TestFormatNumber(unittest.TestCase):
    def test_precision(self):
        self.assertEqual(format_number(Real(sp.pi), 5), "3.1416")
        self.assertEqual(format_number(Real(Fraction(1, 4))), "0.25")

    def test_large_values_use_exponent(self):
        self.assertIn("e", format_number(Real(10**30), 5))
