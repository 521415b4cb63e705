# Shared adapter ports
