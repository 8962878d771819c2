# lettercast: atomic components
# Each component exposes its workflows, models and ports from __init__
