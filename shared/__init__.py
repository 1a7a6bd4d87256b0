# Shared module
