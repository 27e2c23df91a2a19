# Repl_test.py
import io, os, tempfile, unittest
from types import SimpleNamespace

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document

import Repl
import argparser
from completion import CompletionEngine, TabHandler
from dispatcher import Shell


class FakeOutput:
    def __init__(self):
        self.bells = 0

    def bell(self):
        self.bells += 1

    def flush(self):
        pass


class TestProcessLine(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = self._tmp.name
        self.out = io.StringIO()
        self.err = io.StringIO()
        self.shell = Shell(search_path=[], environ={"HOME": self.dir},
                           stdout=self.out, stderr=self.err)

    def tearDown(self):
        self._tmp.cleanup()

    def test_parse_error_keeps_running(self):
        self.assertTrue(Repl.process_line(self.shell, "echo hi >"))
        self.assertEqual(self.out.getvalue(), "parse error: syntax error near unexpected token `newline'\n")

    def test_exit_stops(self):
        self.assertFalse(Repl.process_line(self.shell, "exit"))

    def test_runtime_error_reported(self):
        def boom(command_line):
            raise RuntimeError("kaput")
        self.shell.execute = boom
        self.assertTrue(Repl.process_line(self.shell, "echo hi"))
        self.assertEqual(self.err.getvalue(), "Runtime error: kaput\n")

    def test_run_stream_skips_comments_and_stops_at_exit(self):
        target = os.path.join(self.dir, "out.txt")
        script = io.StringIO(
            "# comment\n"
            "\n"
            f"echo one > {target}\n"
            f"echo two >> {target}\n"
            "exit\n"
            "echo never\n")
        self.assertEqual(Repl.run_stream(self.shell, script), 0)
        with open(target) as f:
            self.assertEqual(f.read(), "one\ntwo\n")
        self.assertEqual(self.out.getvalue(), "")

    def test_run_script_missing(self):
        self.assertEqual(Repl.run_script(self.shell, os.path.join(self.dir, "nope.sh")), 1)

    def test_main_script_mode(self):
        target = os.path.join(self.dir, "main_out.txt")
        script = os.path.join(self.dir, "script.tsh")
        with open(script, "w") as f:
            f.write(f"echo 'from script' > {target}\n")
        self.assertEqual(Repl.main([script]), 0)
        with open(target) as f:
            self.assertEqual(f.read(), "from script\n")


class TestTabKey(unittest.TestCase):
    def press(self, handler, text, cursor=None):
        buffer = Buffer(document=Document(text, len(text) if cursor is None else cursor))
        output = FakeOutput()
        event = SimpleNamespace(current_buffer=buffer, app=SimpleNamespace(output=output))
        kb = Repl.build_key_bindings(handler)
        kb.bindings[0].handler(event)
        return buffer, output

    def handler(self, names):
        return TabHandler(CompletionEngine(builtins=names), search_path=[])

    def test_single_match_replaces_word(self):
        buffer, output = self.press(self.handler(["echo", "exit"]), "ech")
        self.assertEqual(buffer.text, "echo ")
        self.assertEqual(output.bells, 0)

    def test_second_word_completed_in_place(self):
        buffer, _ = self.press(self.handler(["echo"]), "sudo ec")
        self.assertEqual(buffer.text, "sudo echo ")

    def test_common_prefix_extension(self):
        buffer, _ = self.press(self.handler(["xyz_foo", "xyz_foo_bar"]), "xyz_")
        self.assertEqual(buffer.text, "xyz_foo")
        self.assertEqual(buffer.cursor_position, len("xyz_foo"))

    def test_no_match_rings(self):
        buffer, output = self.press(self.handler(["echo"]), "zzz")
        self.assertEqual(buffer.text, "zzz")
        self.assertEqual(output.bells, 1)


class TestArgparser(unittest.TestCase):
    def test_defaults(self):
        args = argparser.build_parser().parse_args([])
        self.assertIsNone(args.script)
        self.assertTrue(args.cache)
        self.assertFalse(args.debug)
        self.assertTrue(args.history_file.endswith(".tabsh_history")
                        or os.environ.get("TABSH_HISTFILE"))

    def test_flags(self):
        args = argparser.build_parser().parse_args(
            ["--no-cache", "--debug", "--history-file", "h.txt", "run.tsh"])
        self.assertEqual(args.script, "run.tsh")
        self.assertFalse(args.cache)
        self.assertTrue(args.debug)
        self.assertEqual(args.history_file, "h.txt")


if __name__ == "__main__":
    unittest.main(verbosity=2)
