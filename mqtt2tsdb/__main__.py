from mqtt2tsdb.bridge import main

main()
