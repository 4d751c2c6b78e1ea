#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Exceptions raised while computing the Earth Mover's Distance."""


class EmdError(Exception):
    """Base class for all errors raised by :mod:`emdist`."""


class InvalidSignature(EmdError, ValueError):
    """A signature is empty, has mismatched features and weights, or carries a non-positive weight."""


class InvalidCost(EmdError, ValueError):
    """The ground cost function returned a negative or non-finite value."""


class ConvergenceFailure(EmdError, RuntimeError):
    """The transportation simplex did not reach an optimal basis within the iteration limit."""
