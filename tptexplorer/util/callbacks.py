import logging


class _SilentProgressBar:
    r""" Stand-in progress bar used when no progress bar implementation is given. It only counts updates. """

    def __init__(self, total=None, **_):
        self.total = total
        self.n = 0

    def update(self, inc=1):
        self.n += inc

    def set_description(self, *_):
        pass

    def close(self):
        pass


def supports_progress_interface(bar):
    r""" Method to check if a progress bar supports the tptexplorer interface, meaning that it
    has `update`, `close`, and `set_description` methods as well as a `n` attribute.

    Parameters
    ----------
    bar : object, optional
        The progress bar implementation to check, can be None.

    Returns
    -------
    supports : bool
        Whether the progress bar is supported.

    See Also
    --------
    ProgressCallback
    """
    has_methods = all(callable(getattr(bar, method, None)) for method in supports_progress_interface.required_methods)
    has_attributes = all(hasattr(bar, attribute) for attribute in supports_progress_interface.required_attributes)
    return has_methods and has_attributes


supports_progress_interface.required_methods = ['update', 'close', 'set_description']
supports_progress_interface.required_attributes = ['n']


class ProgressCallback:
    r"""Base callback function to indicate progress of an iterative solver by incrementing a progress bar.

    Parameters
    ----------
    progress : object
       Progress bar class, e.g. `tqdm.tqdm`, which is instantiated with a `total` keyword argument. The instance
       needs `update()`, `set_description()`, `close()` and an `n` attribute. If None, progress is only counted.
    total : int
       Number of iterations to completion.
    description : string
       text to display in front of the progress bar.

    See Also
    --------
    supports_progress_interface
    """

    def __init__(self, progress, description=None, total=None):
        self.progress_bar = (progress if progress is not None else _SilentProgressBar)(total=total)
        self.total = total
        self.set_description(description)

        assert supports_progress_interface(self.progress_bar), \
            f"Progress bar did not satisfy interface! It should at least have " \
            f"the method(s) {supports_progress_interface.required_methods} and " \
            f"the attribute(s) {supports_progress_interface.required_attributes}."

    def __call__(self, inc=1, *args, **kw):
        self.progress_bar.update(inc)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.progress_bar.total = self.progress_bar.n  # force finish
        self.progress_bar.close()

    def set_description(self, value):
        self.progress_bar.set_description(value)


class IterationErrorProgressCallback(ProgressCallback):
    r"""Callback function to indicate progress by incrementing a progress bar and showing the
    residual norm on each iteration. Can be handed to the committor solver as `callback`.

    Parameters
    ----------
    progress : object
       Tested for a tqdm progress bar. Should implement `update()`, `set_description()`, and `close()`. Should
       also possess a `total` constructor keyword argument.
    total : int
       Number of iterations to completion.
    description : string
       text to display in front of the progress bar.

    Notes
    -----
    The solver invokes the callback as ``callback(iteration, residual)``. The residual is shown in the
    description of the progress bar.

    See Also
    --------
    supports_progress_interface, ProgressCallback
    """

    def __init__(self, progress, description=None, total=None):
        super().__init__(progress, description, total)
        self.description = description

    def __call__(self, iteration=None, residual=None, *args, **kw):
        super().__call__(1)
        error = kw.get('error', residual)
        if error is not None:
            super().set_description("{} - [res: {:.1e}]".format(self.description, error))


class IterationReporter:
    r""" Iteration callback that writes the residual norm of every solver iteration to a logger. It replaces
    printing diagnostics to the console and can be combined with other callbacks.

    Parameters
    ----------
    logger : logging.Logger, optional, default=None
        The logger to use. Defaults to the logger of this module.
    level : int, default=logging.DEBUG
        The level the residuals are logged at.
    every : int, default=1
        Only every `every`-th iteration is reported.

    Examples
    --------
    >>> reporter = IterationReporter(every=10)
    >>> reporter(10, 1e-3)
    >>> reporter.history
    [(10, 0.001)]
    """

    def __init__(self, logger=None, level=logging.DEBUG, every=1):
        if every < 1:
            raise ValueError(f"Reporting interval must be positive but was {every}.")
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.level = level
        self.every = every
        self.history = []

    def __call__(self, iteration, residual, *args, **kw):
        if iteration % self.every == 0:
            self.history.append((iteration, residual))
            self.logger.log(self.level, "iteration %d: residual norm %.3e", iteration, residual)
