import warnings


class NotConvergedWarning(RuntimeWarning):
    r"""
    This warning indicates that some iterative procedure has not
    converged or reached the maximum number of iterations implemented
    as a safe guard to prevent arbitrary many iterations in loops with
    a conditional termination criterion.
    """


class NotConvergedError(RuntimeError):
    pass


class InvalidGraphError(ValueError):
    r"""
    Raised when the input graph does not carry the node or edge attributes a transition path
    analysis requires, or when these attributes hold values that are no probabilities.
    """


def raise_or_warn(msg, on_error, warning=UserWarning, exception=RuntimeError):
    if on_error == 'raise':
        raise exception(msg)
    elif on_error == 'warn':
        warnings.warn(msg, warning, stacklevel=3)
    else:
        raise ValueError('Unsupported value of on_error (%s). Should be "raise" or "warn".' % on_error)
