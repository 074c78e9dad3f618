from discern.run import main

main()
