# Collector module
