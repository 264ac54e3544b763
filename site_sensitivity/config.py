# config.py
# Reserved NoData sentinel for every grid produced by the pipeline
NODATA = -9999.0

# Decimal places for derived threshold metrics (Xover, KG, Reach) and AUC
METRIC_DECIMALS = 3

# Reach value treated as a degenerate operating point
REACH_DEGENERATE = 1.0

# Names of the four recommended thresholds, in report order
CRITERIA = ("sens_spec", "xover", "kg", "reach")

# Flask service
API_HOST = "0.0.0.0"
API_PORT = 8081
