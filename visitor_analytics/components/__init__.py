# visitor-analytics atomic components
