"""
Exception types for the EKF-SLAM package.

Recoverable input problems (stale stamps, malformed observations) are not
exceptions: the estimator reports them through StepStatus / ObservationOutcome
values and keeps running. The exceptions below mark conditions that callers
must not ignore.
"""


class SLAMError(Exception):
    """Base class for all errors raised by ekfslam."""


class InvariantViolation(SLAMError):
    """
    Internal-consistency fault of the estimator.

    Raised when the joint state and covariance dimensions diverge, when the
    covariance stays asymmetric after symmetrization, or when the landmark
    registry would map two ids to the same index. These are defects in the
    estimator itself, never the result of bad input.
    """


class FrameLookupError(SLAMError):
    """A frame resolver could not provide the requested transform."""
