# Integration tests package
