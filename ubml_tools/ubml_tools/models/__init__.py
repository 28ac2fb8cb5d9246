"""Document and value models shared by the parser, the validators and the schema tooling."""
