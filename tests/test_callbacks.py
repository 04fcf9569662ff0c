import logging
import warnings

import pytest
from numpy.testing import assert_equal, assert_

from tptexplorer.markov.tools.analysis import solve_committor
from tptexplorer.util.callbacks import ProgressCallback, IterationErrorProgressCallback, IterationReporter, \
    supports_progress_interface
from tptexplorer.util.exceptions import raise_or_warn, NotConvergedWarning, NotConvergedError


def test_progress_interface(progress_mock):
    assert_(supports_progress_interface(progress_mock()))
    assert_(not supports_progress_interface(None))
    assert_(not supports_progress_interface(object()))


def test_progress_callback(progress_mock):
    with ProgressCallback(progress_mock, description='solving', total=10) as callback:
        callback()
        callback(2)
    assert_equal(callback.progress_bar.n, 3)
    assert_equal(callback.progress_bar.n_update_calls, 2)
    assert_equal(callback.progress_bar.n_close_calls, 1)
    assert_equal(callback.progress_bar.total, 3)


def test_progress_callback_without_bar():
    with ProgressCallback(None, total=5) as callback:
        callback()
        callback(2)
    assert_equal(callback.progress_bar.n, 3)
    assert_equal(callback.progress_bar.total, 3)


def test_iteration_error_progress_callback(progress_mock, walk):
    with IterationErrorProgressCallback(progress_mock, description='committor') as callback:
        solution = solve_committor(walk(15), [0], [14], preconditioner=None, callback=callback)
    bar = callback.progress_bar
    assert_equal(bar.n_update_calls, solution.n_iterations)
    assert_(bar.description.startswith('committor - [res: '))


def test_iteration_reporter(caplog):
    reporter = IterationReporter(every=2, level=logging.INFO)
    with caplog.at_level(logging.INFO, logger='tptexplorer'):
        for iteration, residual in enumerate([1e-1, 1e-2, 1e-3, 1e-4, 1e-5], start=1):
            reporter(iteration, residual)
    assert_equal(reporter.history, [(2, 1e-2), (4, 1e-4)])
    assert_equal(len(caplog.records), 2)
    assert_('residual norm' in caplog.records[0].getMessage())


def test_iteration_reporter_custom_logger(caplog):
    logger = logging.getLogger('committor.progress')
    reporter = IterationReporter(logger=logger)
    with caplog.at_level(logging.DEBUG, logger='committor.progress'):
        reporter(1, .5)
    assert_equal(caplog.records[0].name, 'committor.progress')


def test_iteration_reporter_invalid_interval():
    with pytest.raises(ValueError):
        IterationReporter(every=0)


def test_raise_or_warn():
    with pytest.warns(NotConvergedWarning):
        raise_or_warn("not converged", on_error='warn', warning=NotConvergedWarning)
    with pytest.raises(NotConvergedError):
        raise_or_warn("not converged", on_error='raise', exception=NotConvergedError)
    with pytest.raises(ValueError):
        raise_or_warn("not converged", on_error='ignore')
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        with pytest.raises(UserWarning):
            raise_or_warn("not converged", on_error='warn')
