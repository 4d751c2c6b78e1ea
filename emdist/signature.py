#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Weighted collections of features, the "piles of mass" moved by the Earth Mover's Distance.

Examples
--------
.. sourcecode:: pycon

    >>> from emdist.signature import Signature
    >>> signature = Signature([[0.0, 0.0], [1.0, 1.0]], [0.25, 0.75])
    >>> len(signature), signature.total_weight
    (2, 1.0)
    >>> Signature(['a', 'b', 'c', 'd']).weights.tolist()
    [0.25, 0.25, 0.25, 0.25]

"""

import logging

import numpy as np

from emdist.exceptions import InvalidSignature

logger = logging.getLogger(__name__)


class Signature:
    """An immutable, ordered collection of `(feature, weight)` pairs.

    Features may be of any type: the solver only ever hands them to the ground cost function.
    Weights are stored as a read-only float64 array.

    """
    __slots__ = ('_features', '_weights', '_total_weight')

    def __init__(self, features, weights=None):
        """

        Parameters
        ----------
        features : sequence
            Features of the signature, in order.
        weights : sequence of float, optional
            Strictly positive weight of each feature. If None, every feature gets `1 / len(features)`,
            which makes the signature a probability distribution.

        Raises
        ------
        :class:`~emdist.exceptions.InvalidSignature`
            If `features` is empty, `weights` differs from `features` in length,
            or any weight is non-positive or non-finite.

        """
        features = tuple(features)
        if not features:
            raise InvalidSignature("at least one feature is required")

        if weights is None:
            weights = np.full(len(features), 1.0 / len(features), dtype=np.float64)
        else:
            try:
                weights = np.array(weights, dtype=np.float64)
            except (TypeError, ValueError) as err:
                raise InvalidSignature("weights must be real numbers: %s" % err) from err
            if weights.ndim != 1 or len(weights) != len(features):
                raise InvalidSignature(
                    "the number of features (%i) and weights (%s) must match"
                    % (len(features), weights.shape[0] if weights.ndim else 'scalar')
                )
            if not np.all(np.isfinite(weights)):
                raise InvalidSignature("weights must be finite")
            if np.any(weights <= 0.0):
                raise InvalidSignature(
                    "weights must be strictly positive, got %s at position %i"
                    % (weights.min(), int(np.argmin(weights)))
                )

        weights.setflags(write=False)
        self._features = features
        self._weights = weights
        self._total_weight = float(weights.sum())

    @classmethod
    def from_histogram(cls, histogram):
        """Build a signature from a dense histogram over shared bins.

        Each non-empty bin becomes one feature, identified by its integer bin index.
        Empty bins carry no mass and are left out.

        Parameters
        ----------
        histogram : array_like of float
            Non-negative mass of every bin.

        Returns
        -------
        :class:`~emdist.signature.Signature`
            Signature whose features are the indices of the non-empty bins.

        Raises
        ------
        :class:`~emdist.exceptions.InvalidSignature`
            If a bin is negative or non-finite, or every bin is empty.

        """
        histogram = np.asarray(histogram, dtype=np.float64)
        if histogram.ndim != 1:
            raise InvalidSignature("histogram must be one-dimensional, got shape %s" % (histogram.shape,))
        if not np.all(np.isfinite(histogram)) or np.any(histogram < 0.0):
            raise InvalidSignature("histogram bins must be finite and non-negative")
        bins = np.flatnonzero(histogram)
        if not len(bins):
            raise InvalidSignature("histogram has no mass")
        if len(bins) < len(histogram):
            logger.debug("dropped %i empty bins out of %i", len(histogram) - len(bins), len(histogram))
        return cls([int(b) for b in bins], histogram[bins])

    @property
    def features(self):
        """tuple: Features, in order."""
        return self._features

    @property
    def weights(self):
        """numpy.ndarray: Read-only float64 weights, parallel to :attr:`features`."""
        return self._weights

    @property
    def total_weight(self):
        """float: Sum of all weights."""
        return self._total_weight

    def __len__(self):
        return len(self._features)

    def __iter__(self):
        return zip(self._features, self._weights.tolist())

    def __getitem__(self, index):
        return self._features[index], float(self._weights[index])

    def __repr__(self):
        return '%s(%i features, total_weight=%s)' % (self.__class__.__name__, len(self), self._total_weight)
