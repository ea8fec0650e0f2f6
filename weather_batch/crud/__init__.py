# Repository package
