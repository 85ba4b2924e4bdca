"""Source collection, fact gathering and admission of actions into plans."""