"""Reference-vector pattern classification: overview

This package walks students through building and tuning a binary
classifier from two grayscale images, one per class:

1) Ingestion (``pattern_kfe.ingestion``)
	- Why: turn images into a fixed feature × realization grid.
	- What you learn: resizing, channel averaging, and why every class must
	  share one grid.

2) Binarization and centroids (``pattern_kfe.pipeline.stages``)
	- Why: a tolerance band around each feature's mean converts intensities
	  to bits; a selection fraction condenses each class into one
	  reference vector.
	- What you learn: how ``delta`` and ``selec`` shape the code space.

3) Accuracy characteristics (``pattern_kfe.pipeline.metrics``)
	- Why: code distances to each centroid define acceptance balls whose
	  radius trades first-kind against second-kind errors.
	- What you learn: D1/alpha/beta/D2 and reliable working radii.

4) Functional efficiency (``pattern_kfe.pipeline.scoring``)
	- Why: Shannon and Kullback criteria collapse the four fractions into a
	  single score per radius.
	- What you learn: information-theoretic model selection and how to
	  handle degenerate logarithms.

5) Parameter optimization (``pattern_kfe.pipeline.optimizer``)
	- Why: search ``delta`` × ``selec`` for the pair with the best total
	  Shannon score across classes.
	- What you learn: deterministic grid search with tolerance-based
	  tie-breaking and safe rollback.

The command-line entry points (``pattern_kfe.run_pipeline`` and
``pattern_kfe.optimize_parameters``) write human-readable artifacts under
``outputs/`` so runs can be compared side by side.
"""

__version__ = "0.1.0"
