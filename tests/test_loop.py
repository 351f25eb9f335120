"""
Tests for the generation loop.

A scripted session stands in for the engine: every iteration advances the
counter and reveals the next best score of a predetermined stream.
"""

import pytest
from unittest.mock import Mock
from morphevo.core.loop import CONVERGENCE_SCORE, GenerationLoop, LoopState
from morphevo.errors import EvaluationFailure


class ScriptedSession:
    """Session whose best score follows a fixed stream."""

    def __init__(self, scores, iteration=0):
        self.scores = list(scores)
        self.iteration = iteration
        self.best_score = None
        self.last_scores = []
        self.population = Mock()
        self.calls = 0

    def run_iteration(self):
        score = self.scores[self.calls]
        self.calls += 1
        self.iteration += 1
        self.best_score = score
        self.last_scores = [score, score / 2]


class TestConvergence:
    """Test the convergence stopping rule."""

    def test_stops_at_first_converged_iteration(self):
        """Test the loop stops at 110 and runs no further iteration."""
        session = ScriptedSession([50.0, 109.9, 110.0, 115.0, 119.0])
        loop = GenerationLoop(session, generation_budget=10)

        outcome = loop.run()

        assert session.calls == 3
        assert outcome.state is LoopState.CONVERGED
        assert outcome.start_iteration == 0
        assert outcome.end_iteration == 3
        assert outcome.iterations_run == 3
        assert outcome.best_score == 110.0

    def test_converged_on_budget_iteration(self):
        """Test convergence on the last allowed iteration still counts."""
        session = ScriptedSession([111.0])

        outcome = GenerationLoop(session, generation_budget=1).run()

        assert session.calls == 1
        assert outcome.state is LoopState.CONVERGED

    def test_custom_threshold(self):
        """Test the threshold can be lowered with the evaluator's scale."""
        session = ScriptedSession([10.0, 20.0, 30.0])

        outcome = GenerationLoop(session, generation_budget=10, convergence_score=20.0).run()

        assert session.calls == 2
        assert outcome.state is LoopState.CONVERGED

    def test_convergence_logged(self, caplog):
        """Test convergence is logged with its iteration."""
        session = ScriptedSession([CONVERGENCE_SCORE])

        with caplog.at_level("INFO"):
            GenerationLoop(session, generation_budget=5).run()

        assert "Convergence reached at epoch 1" in caplog.text

    def test_convergence_recorded(self):
        """Test the stats sink hears about convergence once."""
        session = ScriptedSession([100.0, 112.0])
        sink = Mock()

        GenerationLoop(session, generation_budget=5, stats_sink=sink).run()

        sink.record_convergence.assert_called_once_with(2, 112.0)


class TestExhaustion:
    """Test the generation budget."""

    @pytest.mark.parametrize("budget", [1, 3, 7])
    def test_runs_exactly_budget_iterations(self, budget):
        """Test a never-converging run performs exactly the budget."""
        session = ScriptedSession([109.9] * 20)

        outcome = GenerationLoop(session, generation_budget=budget).run()

        assert session.calls == budget
        assert outcome.state is LoopState.EXHAUSTED
        assert outcome.end_iteration == budget

    def test_zero_budget(self):
        """Test a zero budget runs nothing."""
        session = ScriptedSession([])

        outcome = GenerationLoop(session, generation_budget=0).run()

        assert session.calls == 0
        assert outcome.state is LoopState.EXHAUSTED
        assert outcome.best_score is None

    def test_counter_not_advanced_by_session(self):
        """Test the loop terminates even if the session never advances its counter."""
        session = Mock()
        session.iteration = 0
        session.best_score = 1.0
        session.last_scores = [1.0]

        outcome = GenerationLoop(session, generation_budget=3).run()

        assert session.run_iteration.call_count == 3
        assert outcome.state is LoopState.EXHAUSTED


class TestResume:
    """Test loops over resumed sessions."""

    def test_resume_continues_numbering(self):
        """Test the first recorded iteration after resume is the resumed counter."""
        session = ScriptedSession([10.0, 20.0, 30.0], iteration=7)
        sink = Mock()

        outcome = GenerationLoop(session, generation_budget=10, stats_sink=sink).run()

        recorded = [call.args[0].iteration for call in sink.record_iteration_stats.call_args_list]
        assert recorded == [7, 8, 9]
        assert outcome.start_iteration == 7
        assert outcome.end_iteration == 10

    def test_resumed_past_budget(self):
        """Test a population already at the budget runs nothing."""
        session = ScriptedSession([], iteration=12)

        outcome = GenerationLoop(session, generation_budget=10).run()

        assert session.calls == 0
        assert outcome.state is LoopState.EXHAUSTED
        assert outcome.iterations_run == 0


class TestIterationStats:
    """Test what each iteration reports."""

    def test_stats_per_iteration(self):
        """Test statistics are handed to the sink after every iteration."""
        session = ScriptedSession([40.0, 60.0])
        sink = Mock()
        clock = Mock(side_effect=[0.0, 1.0, 3.0, 3.5, 6.0])

        GenerationLoop(session, generation_budget=2, stats_sink=sink, clock=clock).run()

        assert sink.record_iteration_stats.call_count == 2
        first, second = [c.args[0] for c in sink.record_iteration_stats.call_args_list]
        assert first.iteration == 0
        assert first.best_score == 40.0
        assert first.mean_score == 30.0
        assert first.min_score == 20.0
        assert first.iteration_seconds == 2.0
        assert first.elapsed_seconds == 3.0
        assert second.best_score == 60.0
        assert second.elapsed_seconds == 6.0

    def test_verbose_prints_generation_lines(self, capsys):
        """Test verbose loops print one line per generation."""
        session = ScriptedSession([40.0, 60.0])

        GenerationLoop(session, generation_budget=2, verbose=True).run()

        out = capsys.readouterr().out
        assert "Gen    1:" in out
        assert "Gen    2:" in out


class TestFailures:
    """Test fatal errors inside an iteration."""

    def test_evaluation_failure_propagates(self):
        """Test a failed generation aborts the loop."""
        session = Mock()
        session.iteration = 0
        session.run_iteration.side_effect = EvaluationFailure("no usable score")
        sink = Mock()

        with pytest.raises(EvaluationFailure):
            GenerationLoop(session, generation_budget=5, stats_sink=sink).run()

        sink.record_iteration_stats.assert_not_called()
