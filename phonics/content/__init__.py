"""Content collections (digraph and rhyme groups) and their persistence."""
