from .market import main

main()
