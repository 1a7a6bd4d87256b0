# Repositories module
