# Adapters: storage backends, clocks, rendering
