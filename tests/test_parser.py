import unittest

from sparsebf import (
    AddValue,
    Input,
    LoopEnd,
    LoopStart,
    MovePointer,
    Op,
    Output,
    ParseError,
    Program,
    UnmatchedLoopEnd,
    UnmatchedLoopStart,
    parse,
)
from sparsebf.parser import build_jump_table


class ParserTests(unittest.TestCase):
    def test_commands_map_to_unit_instructions(self) -> None:
        program = parse("><+-.,[]")
        self.assertEqual(
            list(program.instructions),
            [
                MovePointer(1),
                MovePointer(-1),
                AddValue(1),
                AddValue(-1),
                Output(),
                Input(),
                LoopStart(),
                LoopEnd(),
            ],
        )

    def test_comment_characters_are_ignored(self) -> None:
        program = parse(">foo<bar[hello] world. this,is+a-comment")
        self.assertEqual("".join(_symbols(program)), "><[].,+-")

    def test_empty_and_comment_only_sources_are_valid(self) -> None:
        self.assertEqual(len(parse("")), 0)
        self.assertEqual(len(parse("not a real program\n")), 0)

    def test_nested_loops_are_matched_both_ways(self) -> None:
        program = parse(">+[<[-].]")
        self.assertEqual(program.jump_table, {2: 8, 8: 2, 4: 6, 6: 4})

    def test_sibling_loops(self) -> None:
        program = parse("[][]")
        self.assertEqual(program.jump_table, {0: 1, 1: 0, 2: 3, 3: 2})

    def test_jump_table_indexes_instructions_not_characters(self) -> None:
        program = parse("a [ b ] c")
        self.assertEqual(program.jump_table, {0: 1, 1: 0})


class ParseErrorTests(unittest.TestCase):
    def test_unmatched_loop_end_reports_offset(self) -> None:
        with self.assertRaises(UnmatchedLoopEnd) as ctx:
            parse("+ ]")
        self.assertEqual(ctx.exception.offset, 2)
        self.assertIn("offset 2", str(ctx.exception))

    def test_unmatched_loop_end_after_balanced_prefix(self) -> None:
        with self.assertRaises(UnmatchedLoopEnd) as ctx:
            parse("[-]]")
        self.assertEqual(ctx.exception.offset, 3)

    def test_unmatched_loop_start_reports_all_open_offsets(self) -> None:
        with self.assertRaises(UnmatchedLoopStart) as ctx:
            parse("x[+[[-]")
        self.assertEqual(ctx.exception.offsets, (1, 3))
        self.assertEqual(ctx.exception.offset, 1)
        self.assertIn("1, 3", str(ctx.exception))

    def test_errors_share_parse_error_base(self) -> None:
        for source in ("[", "]", "][", "[[]"):
            with self.subTest(source=source):
                with self.assertRaises(ParseError):
                    parse(source)

    def test_balanced_sources_parse(self) -> None:
        for source in ("", "[]", "[[]]", "[][]", "+[>[-]<]."):
            with self.subTest(source=source):
                parse(source)


class JumpTableTests(unittest.TestCase):
    def test_build_jump_table_matches_parser(self) -> None:
        program = parse("+[>[-]<[>+<-]]")
        self.assertEqual(build_jump_table(program.instructions), program.jump_table)

    def test_build_jump_table_rejects_unbalanced(self) -> None:
        with self.assertRaises(ValueError):
            build_jump_table([LoopStart()])
        with self.assertRaises(ValueError):
            build_jump_table([LoopEnd()])


class ProgramTests(unittest.TestCase):
    def test_jump_table_is_read_only(self) -> None:
        program = parse("[]")
        with self.assertRaises(TypeError):
            program.jump_table[0] = 5
        self.assertEqual(program.jump_table[0], 1)

    def test_jump_table_is_copied_from_caller(self) -> None:
        table = {0: 1, 1: 0}
        program = Program((LoopStart(), LoopEnd()), table)
        table[0] = 7
        self.assertEqual(program.jump_table[0], 1)


class ListingTests(unittest.TestCase):
    def test_listing_shows_arguments_and_targets(self) -> None:
        listing = parse("+[.]").listing().splitlines()
        self.assertEqual(listing[0], "0000  add +1")
        self.assertEqual(listing[1], "0001  loop_start -> 0003")
        self.assertEqual(listing[2], "0002  output")
        self.assertEqual(listing[3], "0003  loop_end -> 0001")

    def test_listing_of_empty_program(self) -> None:
        self.assertEqual(parse("").listing(), "")


_SYMBOLS = {
    (Op.MOVE, 1): ">",
    (Op.MOVE, -1): "<",
    (Op.ADD, 1): "+",
    (Op.ADD, -1): "-",
    (Op.OUTPUT, 0): ".",
    (Op.INPUT, 0): ",",
    (Op.LOOP_START, 0): "[",
    (Op.LOOP_END, 0): "]",
}


def _symbols(program):
    return [_SYMBOLS[(instruction.op, instruction.arg)] for instruction in program.instructions]


if __name__ == "__main__":
    unittest.main()
