"""Document tree services for the OpsDocs backend."""
