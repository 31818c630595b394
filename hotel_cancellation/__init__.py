"""
Hotel Booking Cancellation Analysis - Source Code.

Modules:
- data: Loading the bookings CSV and selecting modelable rows
- eda: Exploration of the four predictors
- features: Variable recoding, scaling and train/test split
- models: Bayesian logistic regression (PyMC) and convergence diagnostics
- evaluation: Threshold selection and predictive metrics
- visualization: Figures for the report
- pipeline: End-to-end analysis
"""
