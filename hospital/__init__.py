"""
Dati di pianificazione ospedaliera: pazienti, medici, appuntamenti.

Struttura:
- config.py     : configurazione da ambiente/.env e logging
- db.py         : engine, sessioni e transaction() (unità atomica)
- errors.py     : errori del livello dati
- models.py     : modelli ORM e DeletePolicy
- repository.py : query e scritture (ogni operazione riceve la sessione)
- seed.py       : dati iniziali dimostrativi
- cli.py        : comandi da console
- api_main.py   : API HTTP (FastAPI)
- tools/        : script di manutenzione (percorso DB, riferimenti orfani)
"""
