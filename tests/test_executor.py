"""Tests for the discover-then-descend execution engine."""

import pytest

from section_test.exceptions import ConfigurationError
from section_test.reporting.console_reporter import ConsoleReporter
from section_test.runner.executor import Executor
from section_test.session import Session
from section_test.unit.execution_unit import UnitState
from section_test.unit.resolver import declare_test


def build_tree(session, depth, width, calls):
    """Declare one root test with ``width`` sections per level, ``depth`` levels deep."""
    def make_body(path, level):
        def body(t):
            calls.append(path)
            if level == depth:
                return
            for i in range(width):
                t.add_section(f"s{i}")(make_body(f"{path}/s{i}", level + 1))
        return body

    return declare_test(session, "root", make_body("root", 0))


class TestExactlyOnce:
    @pytest.mark.parametrize("depth,width", [(2, 1), (2, 3), (4, 2)])
    def test_each_body_runs_once(self, session, executor, depth, width):
        calls = []
        build_tree(session, depth, width, calls)
        executor.run()

        assert len(calls) == len(set(calls))
        assert len(calls) == sum(width ** level for level in range(depth + 1))

    def test_execute_again_is_noop(self, session, executor, output):
        calls = []
        root = build_tree(session, 2, 2, calls)
        executor.run()
        before = (list(calls), list(output))

        executor.execute(root)
        for unit in root.iter_subtree():
            executor.execute(unit)

        assert (calls, output) == before
        assert all(u.state == UnitState.EXECUTED for u in root.iter_subtree())


class TestIdentityStability:
    def test_children_count_equals_distinct_names(self, session, executor):
        def body(t):
            for name in ("a", "b", "a", "c", "b"):
                t.add_section(name)(lambda t: None)

        root = declare_test(session, "root", body)
        executor.run()

        assert [c.friendly_name for c in root.children.values()] == ["a", "b", "c"]


class TestOrderingAndOutput:
    def test_parent_line_before_child_and_deeper(self, session, executor, output):
        def root_body(t):
            @t.add_section("A")
            def a(t):
                @t.add_section("B")
                def b(t):
                    pass

        declare_test(session, "root", root_body)
        executor.run()

        assert [line.strip(" .").replace("PASSED", "").rstrip(".") for line in output] == [
            "root", "A", "B",
        ]
        assert output[1].startswith("    A")
        assert output[2].startswith("        B")

    def test_siblings_in_declaration_order(self, session, executor):
        order = []

        def root_body(t):
            for name in ("first", "second", "third"):
                t.add_section(name)(lambda t, name=name: order.append(name))

        declare_test(session, "root", root_body)
        executor.run()
        assert order == ["first", "second", "third"]

    def test_roots_run_in_declaration_order(self, session, executor):
        order = []
        declare_test(session, "one", lambda t: order.append("one"))
        declare_test(session, "two", lambda t: order.append("two"))
        executor.run()
        assert order == ["one", "two"]

    def test_sections_share_parent_state(self, session, executor):
        seen = []

        def root_body(t):
            handle = "x_test_section"

            @t.add_section("uses handle")
            def _(t):
                seen.append(handle)

        declare_test(session, "root", root_body)
        executor.run()
        assert seen == ["x_test_section"]


class TestFailures:
    def test_recorded_failure_fails_unit_and_suite(self, session, executor, output):
        def body(t):
            t.assert_equal(1 + 1, 3)
            t.fail("second problem")

        unit = declare_test(session, "bad", body)
        result = executor.run()

        assert len(unit.failures) == 2
        assert unit.passed is False
        assert result.tests_did_pass is False
        assert output[-1].endswith("FAILED")
        assert 'Test named "bad" raised exception:' in output[0]

    def test_assert_statement_is_recorded(self, session, executor):
        def body(t):
            assert 1 == 2, "math is broken"

        unit = declare_test(session, "bad", body)
        executor.run()
        assert unit.failures[0].message.startswith("math is broken")
        assert "AssertionError" in unit.failures[0].detail

    def test_child_failure_does_not_fail_parent(self, session, executor):
        def body(t):
            @t.add_section("broken")
            def _(t):
                t.fail("nope")

        root = declare_test(session, "root", body)
        result = executor.run()

        child = next(iter(root.children.values()))
        assert root.passed is True
        assert child.passed is False
        assert result.tests_did_pass is False

    def test_fatal_error_propagates(self, session, executor):
        def body(t):
            raise RuntimeError("fatal")

        declare_test(session, "boom", body)
        with pytest.raises(RuntimeError, match="fatal"):
            executor.run()

    def test_current_unit_restored_after_fatal_error(self, session, executor):
        declare_test(session, "boom", lambda t: 1 / 0)
        with pytest.raises(ZeroDivisionError):
            executor.run()
        assert session.current is None

    def test_pass_flag_stays_cleared(self, session, executor):
        declare_test(session, "bad", lambda t: t.fail("x"))
        declare_test(session, "good", lambda t: None)
        assert executor.run().tests_did_pass is False

    def test_nested_test_declaration_rejected(self, session, executor):
        def body(t):
            declare_test(session, "inner", lambda t: None)

        declare_test(session, "outer", body)
        with pytest.raises(ConfigurationError, match='named "outer"'):
            executor.run()


    def test_section_declared_on_outer_context_rejected(self, session, executor):
        ran = []

        def root_body(t):
            @t.add_section("a")
            def _(s):
                @t.add_section("b")
                def _(s):
                    ran.append("b")

        root = declare_test(session, "root", root_body)
        with pytest.raises(ConfigurationError, match='"b" declared on "root"'):
            executor.run()

        assert ran == []
        assert list(root.section_names_to_ids) == ["a"]
        assert session.current is None


class TestExpectFail:
    def test_isolated_crash_reports_pass(self, session, executor, isolator):
        calls = []

        def body(t):
            @t.add_section("divide_by_zero", expect_fail=True)
            def _(t):
                calls.append("ran in-process")

        root = declare_test(session, "math", body)
        result = executor.run()

        section = next(iter(root.children.values()))
        assert isolator.isolated == ["divide_by_zero"]
        assert calls == []
        assert section.passed is True
        assert result.tests_did_pass is True

    def test_clean_exit_reports_fail(self, session, executor, isolator, output):
        isolator.crashes["lucky"] = False
        unit = declare_test(session, "lucky", lambda t: None, expect_fail=True)
        result = executor.run()

        assert unit.passed is False
        assert result.tests_did_pass is False
        assert output[-1].endswith("FAILED")

    def test_no_descend_into_isolated_unit(self, session, executor):
        inner_calls = []

        def body(t):
            @t.add_section("inner")
            def _(t):
                inner_calls.append("inner")

        unit = declare_test(session, "outer", body, expect_fail=True)
        executor.run()

        assert unit.children == {}
        assert inner_calls == []

    def test_runs_in_process_when_isolated(self, config, output, isolator):
        session = Session(config.merged(isolated=True))
        executor = Executor(session, ConsoleReporter(session, echo=output.append), isolator)
        calls = []

        def body(t):
            calls.append("outer")

            @t.add_section("nested", expect_fail=True)
            def _(t):
                calls.append("nested")

        declare_test(session, "outer", body, expect_fail=True)
        executor.run()

        assert isolator.isolated == []
        assert calls == ["outer", "nested"]


class TestRunPath:
    def test_rebuilds_ancestors_and_runs_target_only(self, session, executor, output):
        calls = []

        def root_body(t):
            calls.append("root")

            @t.add_section("A")
            def a(t):
                calls.append("A")

                @t.add_section("B")
                def b(t):
                    calls.append("B")

            @t.add_section("sibling")
            def sibling(t):
                calls.append("sibling")

        declare_test(session, "root", root_body)
        executor.run_path(["root", "A", "B"])

        assert calls == ["root", "A", "B"]
        assert len(output) == 1
        assert output[0].lstrip().startswith("B")

    def test_unknown_section(self, session, executor):
        declare_test(session, "root", lambda t: None)
        with pytest.raises(ConfigurationError, match='No section named "missing"'):
            executor.run_path(["root", "missing"])

    def test_unknown_test(self, session, executor):
        with pytest.raises(ConfigurationError, match='No test named "nope"'):
            executor.run_path(["nope"])

    def test_run_selected_names(self, session, executor):
        order = []
        declare_test(session, "a", lambda t: order.append("a"))
        declare_test(session, "b", lambda t: order.append("b"))
        executor.run(["b"])
        assert order == ["b"]
